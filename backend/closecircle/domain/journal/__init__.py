"""Journal domain: entries, visibility and feeds."""
