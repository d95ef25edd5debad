"""Tests for versioned rows and the collapse fold."""

import pytest

from mdxdb.storage.versioned import TOMBSTONE, Versioned, VersionedLog, collapse


class TestCollapse:
    """Tests for collapse."""
    
    def test_highest_live_version_wins(self):
        """Test the newest live row is kept per key."""
        rows = [
            Versioned("a", "v1", 1),
            Versioned("a", "v2", 2),
            Versioned("b", "only", 5),
        ]
        
        live = collapse(rows)
        
        assert live["a"].value == "v2"
        assert live["b"].value == "only"
    
    def test_cancelled_version_is_dropped(self):
        """Test a version cancelled by a tombstone falls back to nothing."""
        row = Versioned("a", "v1", 1)
        
        assert collapse([row, row.cancel()]) == {}
    
    def test_update_falls_through_cancellation(self):
        """Test an update cancels the old version and keeps the new one."""
        v1 = Versioned("a", "v1", 1)
        v2 = Versioned("a", "v2", 2)
        
        live = collapse([v1, v1.cancel(), v2])
        
        assert live["a"] is v2
    
    def test_order_independent(self):
        """Test rows may arrive in any order."""
        v1 = Versioned("a", "v1", 1)
        v2 = Versioned("a", "v2", 2)
        
        assert collapse([v2, v1.cancel(), v1])["a"] is v2
    
    def test_tombstone_flag(self):
        """Test cancel produces a tombstone for the same version."""
        row = Versioned("a", "v1", 3)
        cancel = row.cancel()
        
        assert cancel.tombstone
        assert cancel.sign == TOMBSTONE
        assert cancel.version == 3
        assert not row.tombstone


class TestVersionedLog:
    """Tests for VersionedLog."""
    
    def test_put_and_update(self):
        """Test put appends a tombstone for the replaced version."""
        log = VersionedLog()
        log.put("a", {"title": "one"})
        log.put("a", {"title": "two"})
        
        assert log.latest("a").value == {"title": "two"}
        assert log.latest("a").version == 2
        assert [r.sign for r in log.rows] == [1, -1, 1]
    
    def test_delete(self):
        """Test delete hides the key and is idempotent."""
        log = VersionedLog()
        log.put("a", "x")
        
        assert log.delete("a")
        assert log.latest("a") is None
        assert not log.delete("a")
        assert log.live() == {}
    
    def test_stale_version_rejected(self):
        """Test writing an older version raises."""
        log = VersionedLog()
        log.put("a", "x", version=10)
        
        with pytest.raises(ValueError):
            log.put("a", "y", version=5)
