"""Identity Registry unit tests."""

from gpsrelay.core.registry import IdentityRegistry


class TestIdentityRegistry:

    def test_associate_and_resolve(self):
        reg = IdentityRegistry()
        conn = object()
        reg.associate(conn, "c1")
        assert reg.resolve(conn) == "c1"
        assert conn in reg
        assert len(reg) == 1

    def test_last_write_wins(self):
        reg = IdentityRegistry()
        conn = object()
        reg.associate(conn, "c1")
        reg.associate(conn, "c2")
        assert reg.resolve(conn) == "c2"
        assert len(reg) == 1

    def test_same_identity_on_two_connections(self):
        """Registry is per connection; duplicate ids are not merged."""
        reg = IdentityRegistry()
        a, b = object(), object()
        reg.associate(a, "dup")
        reg.associate(b, "dup")
        assert len(reg) == 2
        reg.remove(a)
        assert reg.resolve(b) == "dup"

    def test_resolve_missing_returns_none(self):
        assert IdentityRegistry().resolve(object()) is None

    def test_remove_missing_is_noop(self):
        reg = IdentityRegistry()
        reg.remove(object())
        assert len(reg) == 0

    def test_remove_does_not_mutate_on_resolve(self):
        reg = IdentityRegistry()
        conn = object()
        reg.associate(conn, "c1")
        reg.resolve(conn)
        reg.resolve(conn)
        assert reg.resolve(conn) == "c1"
        reg.remove(conn)
        assert reg.resolve(conn) is None
