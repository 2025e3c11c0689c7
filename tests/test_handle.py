"""
Tests for handle ownership: explicit free, idempotence, and use after free.
"""

import pytest

import hvclient
from hvclient import FreedHandleError, NativeCallError


class TestFree:
    """Test explicit release of native references."""

    def test_free_releases_reference(self, fake, conn):
        net = conn.lookup_network_by_name("default")
        assert fake.outstanding_refs() == {"network:default": 1}
        net.free()
        assert net.freed
        assert fake.outstanding_refs() == {}

    def test_free_twice_is_noop(self, fake, conn):
        net = conn.lookup_network_by_name("default")
        net.free()
        net.free()
        assert fake.count("virNetworkFree") == 1
        assert fake.over_released == []

    def test_context_manager_frees(self, fake, conn):
        with conn.lookup_domain_by_name("guest") as dom:
            assert dom.name == "guest"
        assert dom.freed
        assert fake.count("virDomainFree") == 1

    def test_failed_free_keeps_handle(self, fake, conn):
        """A destructor failure leaves the handle usable and owned."""
        pool = conn.lookup_storage_pool_by_name("images")
        fake.fail("virStoragePoolFree", message="pool busy")
        with pytest.raises(NativeCallError) as excinfo:
            pool.free()
        assert excinfo.value.function_name == "virStoragePoolFree"
        assert not pool.freed
        assert pool.name == "images"
        pool.free()
        assert fake.outstanding_refs() == {}

    def test_close_connection_twice(self, fake):
        c = hvclient.open("test:///default")
        c.close()
        c.close()
        assert c.closed
        assert fake.count("virConnectClose") == 1


class TestUseAfterFree:
    """Test that a freed handle never reaches native code."""

    @pytest.mark.parametrize(
        "lookup, use",
        [
            ("lookup_network_by_name", lambda h: h.name),
            ("lookup_network_by_name", lambda h: h.bridge_name),
            ("lookup_domain_by_name", lambda h: h.is_active),
            ("lookup_domain_by_name", lambda h: h.memory_parameters),
            ("lookup_storage_pool_by_name", lambda h: h.list_volumes()),
        ],
    )
    def test_operation_after_free(self, fake, conn, lookup, use):
        name = {"lookup_network_by_name": "default", "lookup_domain_by_name": "guest"}.get(lookup, "images")
        handle = getattr(conn, lookup)(name)
        handle.free()
        before = list(fake.calls)
        with pytest.raises(FreedHandleError):
            use(handle)
        assert fake.calls == before

    def test_closed_connection(self, fake):
        c = hvclient.open("test:///default")
        c.close()
        with pytest.raises(FreedHandleError, match="Connection has been freed"):
            c.hostname
        with pytest.raises(FreedHandleError):
            c.list_all_networks()

    def test_freed_handle_error_is_hverror(self):
        assert issubclass(FreedHandleError, hvclient.HVError)


class TestBackReference:
    """Test the connection back-reference of child handles."""

    def test_child_records_connection(self, conn):
        with conn.lookup_network_by_name("default") as net:
            assert net.connection is conn
            assert net.context is conn.context

    def test_connection_is_its_own_connection(self, conn):
        assert conn.connection is conn

    def test_child_does_not_keep_connection_open(self, fake, conn):
        net = conn.lookup_network_by_name("default")
        conn.close()
        # the child still owns its reference and can be freed on its own
        net.free()
        assert fake.outstanding_refs() == {}

    def test_repr(self, conn):
        net = conn.lookup_network_by_name("default")
        assert repr(net).startswith("<Network 0x")
        net.free()
        assert repr(net) == "<Network freed>"
