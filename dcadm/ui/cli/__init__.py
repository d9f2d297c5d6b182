"""CLI sub-command groups, registered by dcadm.main."""
