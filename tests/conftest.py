"""
Shared fixtures: every test runs against a fresh in-process fake libvirt.
"""

import ctypes
import os
import sys

import pytest

# Add the parent directory to the path so we can import hvclient
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import hvclient
from hvclient import _ffi
from hvclient.context import default_context

from fake_libvirt import (
    BOOLEAN,
    DOUBLE,
    INT,
    LLONG,
    STRING,
    UINT,
    ULLONG,
    FakeLibvirt,
    FakeObject,
)


@pytest.fixture
def fake():
    """A fake libvirt with a few networks, domains and one storage pool."""
    lib = FakeLibvirt()
    lib.add(FakeObject("network", "default", uuid="8c5a3d70-0000-4000-8000-000000000001", active=True))
    lib.add(FakeObject("network", "isolated", uuid="8c5a3d70-0000-4000-8000-000000000002"))
    lib.add(
        FakeObject(
            "domain",
            "guest",
            uuid="6695eb01-f6a4-8304-79aa-97f2502e193f",
            active=True,
            dom_id=1,
            params={
                "memory": [
                    ["hard_limit", ULLONG, 2097152],
                    ["soft_limit", ULLONG, 1048576],
                    ["swap_hard_limit", ULLONG, 4194304],
                ],
                "blkio": [
                    ["weight", UINT, 500],
                    ["device_weight", STRING, "/dev/sda,100"],
                ],
                "scheduler": [
                    ["cpu_shares", ULLONG, 1024],
                    ["vcpu_quota", LLONG, -1],
                    ["emulator_period", ULLONG, 100000],
                ],
            },
        )
    )
    lib.add(FakeObject("domain", "stopped", uuid="6695eb01-f6a4-8304-79aa-97f2502e1940"))
    lib.add(
        FakeObject(
            "pool",
            "images",
            uuid="35bb2ad9-388a-cdfe-461a-b8907f6e53fe",
            active=True,
            volumes=["disk0.qcow2", "disk1.qcow2", "seed.iso"],
        )
    )
    _ffi.use_library(lib, lib.libc)
    default_context().last_error = None
    yield lib
    _ffi.use_library(None)


@pytest.fixture
def conn(fake):
    """An open connection to the fake driver."""
    c = hvclient.open("test:///default")
    yield c
    c.close()


@pytest.fixture
def typed_params():
    """A native parameter array holding one entry of every kind."""
    entries = [
        ("an_int", INT, -5),
        ("a_uint", UINT, 4000000000),
        ("an_llong", LLONG, -(2**40)),
        ("a_ullong", ULLONG, 2**63),
        ("a_double", DOUBLE, 0.5),
        ("a_bool", BOOLEAN, True),
        ("a_string", STRING, "hello"),
    ]
    params = (_ffi.TypedParameterStruct * len(entries))()
    keep = []
    for i, (name, kind, value) in enumerate(entries):
        params[i].field = name.encode()
        params[i].type = kind
        if kind == INT:
            params[i].value.i = value
        elif kind == UINT:
            params[i].value.ui = value
        elif kind == LLONG:
            params[i].value.l = value
        elif kind == ULLONG:
            params[i].value.ul = value
        elif kind == DOUBLE:
            params[i].value.d = value
        elif kind == BOOLEAN:
            params[i].value.b = 1
        else:
            buf = ctypes.create_string_buffer(value.encode())
            keep.append(buf)
            params[i].value.s = ctypes.addressof(buf)
    # the string buffers must outlive the test
    yield params
