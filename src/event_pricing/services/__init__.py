"""Services subpackage - CSV exchange, backend client and load/save orchestration."""
