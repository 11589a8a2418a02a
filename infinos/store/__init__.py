from infinos.store.memory_store import InMemoryDeviceStore
from infinos.store.supabase_store import SupabaseDeviceStore


def create_store(store_cfg, timeout=5.0):
    """Build the configured device store ('supabase' or 'memory')."""
    backend = store_cfg.get('backend', 'supabase')
    if backend == 'memory' or not store_cfg.get('url'):
        if backend != 'memory':
            print("[STORE] SUPABASE_URL missing - using in-memory device store")
        return InMemoryDeviceStore()
    return SupabaseDeviceStore(
        store_cfg['url'],
        store_cfg.get('key', ''),
        table=store_cfg.get('table', 'devices'),
        timeout=timeout,
    )


__all__ = [
    'InMemoryDeviceStore',
    'SupabaseDeviceStore',
    'create_store',
]
