"""Process plumbing: settings, logging, clock, timeout sweeper and entry point."""
