"""
stockledger test suite

- test_allocation_planner.py: pure LIFO planning
- test_withdrawal_coordinator.py: retries, timeouts and races on the in-memory store
- test_lot_store.py: versioned writes against SQLite
- test_ledger_service.py / test_inventory_routes.py: service and HTTP contracts
"""
