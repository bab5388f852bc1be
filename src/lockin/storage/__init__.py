"""
Storage subsystem.

Components:
- errors.py: typed storage failures
- bridge.py: KeyValueBridge, the verified-failure wrapper around a KeyValueStore
- sqlite_kv.py: SQLite-backed, scope-partitioned key-value store
- memory_kv.py: process-local key-value store (fallback + tests)
- cell.py: PersistedCell, a typed value that persists itself on every change
"""
