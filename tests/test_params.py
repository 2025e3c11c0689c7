"""
Tests for typed parameter sets: decoding, merge-patch encoding, and the
count/fill/store exchange.
"""

import pytest

from hvclient import (
    AffectFlags,
    ArgumentError,
    InvalidParameterKind,
    NativeCallError,
    TypeMismatchError,
)
from hvclient import params as typed
from hvclient.params import split_values_and_flags


class TestDecode:
    """Test conversion of native arrays to dicts."""

    def test_every_kind(self, typed_params):
        assert typed.decode(typed_params, 7) == {
            "an_int": -5,
            "a_uint": 4000000000,
            "an_llong": -(2**40),
            "a_ullong": 2**63,
            "a_double": 0.5,
            "a_bool": True,
            "a_string": "hello",
        }

    def test_order_preserved(self, typed_params):
        assert list(typed.decode(typed_params, 3)) == ["an_int", "a_uint", "an_llong"]

    def test_null_string(self, typed_params):
        typed_params[6].value.s = None
        assert typed.decode(typed_params, 7)["a_string"] is None

    def test_invalid_kind(self, typed_params):
        typed_params[2].type = 99
        with pytest.raises(InvalidParameterKind) as excinfo:
            typed.decode(typed_params, 7)
        assert excinfo.value.kind == 99
        assert excinfo.value.field == "an_llong"


class TestEncode:
    """Test in-place overwrite of a fetched array."""

    def test_only_named_fields_change(self, typed_params):
        typed.encode(typed_params, 7, {"an_int": 12, "a_bool": False})
        decoded = typed.decode(typed_params, 7)
        assert decoded["an_int"] == 12
        assert decoded["a_bool"] is False
        assert decoded["a_uint"] == 4000000000
        assert decoded["a_string"] == "hello"

    def test_empty_patch_round_trip(self, typed_params):
        before = typed.decode(typed_params, 7)
        assert typed.encode(typed_params, 7, {}) == {}
        assert typed.decode(typed_params, 7) == before == {
            "an_int": -5,
            "a_uint": 4000000000,
            "an_llong": -(2**40),
            "a_ullong": 2**63,
            "a_double": 0.5,
            "a_bool": True,
            "a_string": "hello",
        }

    def test_none_value_leaves_field(self, typed_params):
        typed.encode(typed_params, 7, {"an_int": None})
        assert typed.decode(typed_params, 7)["an_int"] == -5

    def test_unknown_keys_ignored(self, typed_params):
        typed.encode(typed_params, 7, {"no_such_field": 1})
        assert typed.decode(typed_params, 7)["an_int"] == -5

    def test_int_to_double(self, typed_params):
        typed.encode(typed_params, 7, {"a_double": 3})
        assert typed.decode(typed_params, 7)["a_double"] == 3.0

    def test_string_slot_replaced(self, typed_params):
        original = typed_params[6].value.s
        replaced = typed.encode(typed_params, 7, {"a_string": "world"})
        assert list(replaced) == [6]
        assert replaced[6][0] == original
        assert typed.decode(typed_params, 7)["a_string"] == "world"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("an_int", "12"),
            ("an_int", True),
            ("an_int", 1.5),
            ("an_int", 2**31),
            ("a_uint", -1),
            ("a_uint", 2**32),
            ("an_llong", 2**63),
            ("a_ullong", -1),
            ("a_double", "0.5"),
            ("a_double", False),
            ("a_bool", 1),
            ("a_string", 5),
        ],
    )
    def test_mismatch(self, typed_params, field, value):
        with pytest.raises(TypeMismatchError) as excinfo:
            typed.encode(typed_params, 7, {field: value})
        assert excinfo.value.field == field

    def test_mismatch_writes_nothing(self, typed_params):
        """Validation happens before any slot is written."""
        with pytest.raises(TypeMismatchError):
            typed.encode(typed_params, 7, {"an_int": 1, "a_string": 2})
        assert typed.decode(typed_params, 7)["an_int"] == -5

    def test_mismatch_is_type_error(self):
        assert issubclass(TypeMismatchError, TypeError)


class TestDomainParameters:
    """Test the full exchange against a domain."""

    def test_get_memory(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            assert dom.memory_parameters == {
                "hard_limit": 2097152,
                "soft_limit": 1048576,
                "swap_hard_limit": 4194304,
            }
        assert fake.count("virDomainGetMemoryParameters") == 2

    def test_set_subset(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            dom.memory_parameters = {"soft_limit": 524288}
            assert dom.memory_parameters == {
                "hard_limit": 2097152,
                "soft_limit": 524288,
                "swap_hard_limit": 4194304,
            }

    def test_empty_patch(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            before = list(fake.calls)
            dom.set_memory_parameters({})
            assert fake.calls == before

    def test_non_str_names_rejected(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            before = list(fake.calls)
            with pytest.raises(ArgumentError):
                dom.set_memory_parameters({b"soft_limit": 1})
            assert fake.calls == before

    def test_not_a_mapping(self, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            with pytest.raises(ArgumentError):
                dom.set_memory_parameters([("soft_limit", 1)])

    def test_count_zero(self, fake, conn):
        with conn.lookup_domain_by_name("stopped") as dom:
            assert dom.get_memory_parameters() == {}
            dom.set_memory_parameters({"hard_limit": 1})
        # one count query each, never a fill or a store
        assert fake.count("virDomainGetMemoryParameters") == 2
        assert fake.count("virDomainSetMemoryParameters") == 0

    def test_mismatch_stores_nothing(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            with pytest.raises(TypeMismatchError):
                dom.memory_parameters = {"hard_limit": "lots"}
        assert fake.count("virDomainSetMemoryParameters") == 0

    def test_strings_released(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            assert dom.blkio_parameters == {"weight": 500, "device_weight": "/dev/sda,100"}
        assert fake.allocations == {}
        assert fake.cleared == [2]

    def test_set_string(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            dom.blkio_parameters = {"device_weight": "/dev/sdb,200"}
            assert fake.last_set == {"weight": 500, "device_weight": "/dev/sdb,200"}
            assert dom.blkio_parameters["device_weight"] == "/dev/sdb,200"
        # libvirt's own copy was released, and ours never handed to it
        assert fake.allocations == {}
        assert fake.bad_frees == []

    def test_store_failure_still_clears(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            fake.fail("virDomainSetBlkioParameters", message="device busy")
            with pytest.raises(NativeCallError, match="device busy"):
                dom.set_blkio_parameters({"device_weight": "/dev/sdb,200"})
        assert fake.allocations == {}
        assert fake.bad_frees == []

    def test_scheduler(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            assert dom.scheduler_type == ("posix", 3)
            assert dom.scheduler_parameters == {
                "cpu_shares": 1024,
                "vcpu_quota": -1,
                "emulator_period": 100000,
            }
            dom.scheduler_parameters = ({"cpu_shares": 512, "vcpu_quota": 50000}, AffectFlags.LIVE)
            params = dom.get_scheduler_parameters(AffectFlags.LIVE)
        assert params["cpu_shares"] == 512
        assert params["vcpu_quota"] == 50000
        assert fake.allocations == {}

    def test_node_memory(self, fake, conn):
        fake.objects[conn.ptr].params["node_memory"] = [["shm_pages_to_scan", 2, 100]]
        assert conn.node_memory_parameters == {"shm_pages_to_scan": 100}
        conn.node_memory_parameters = {"shm_pages_to_scan": 200}
        assert conn.get_node_memory_parameters() == {"shm_pages_to_scan": 200}

    def test_without_clear_function(self, fake, conn):
        """Older libraries cannot release parameter strings; reading still works."""
        fake.hide("virTypedParamsClear")
        with conn.lookup_domain_by_name("guest") as dom:
            assert dom.memory_parameters["hard_limit"] == 2097152
        assert fake.cleared == []


class TestSplitValuesAndFlags:
    """Test the (values[, flags]) setter argument."""

    def test_mapping(self):
        assert split_values_and_flags({"a": 1}) == ({"a": 1}, 0)

    def test_pair(self):
        assert split_values_and_flags(({"a": 1}, AffectFlags.CONFIG)) == ({"a": 1}, 2)
        assert split_values_and_flags([{"a": 1}, None]) == ({"a": 1}, 0)

    @pytest.mark.parametrize("arg", [(), ({"a": 1},), ({"a": 1}, 0, 0)])
    def test_wrong_arity(self, arg):
        with pytest.raises(ArgumentError, match=f"wrong number of arguments \\({len(arg)} for 1 or 2\\)"):
            split_values_and_flags(arg)

    @pytest.mark.parametrize(
        "arg", [5, "soft_limit", (["soft_limit"], 0), ({"a": 1}, "live"), ({"a": 1}, 1.0), ({"a": 1}, True)]
    )
    def test_wrong_type(self, arg):
        with pytest.raises(ArgumentError):
            split_values_and_flags(arg)
