"""Archive bucket naming, access and resume point resolution."""
