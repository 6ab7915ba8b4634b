from base_snapshot.snapshot.preview import BasePreview, TablePreview, preview_base
from base_snapshot.snapshot.service import SnapshotService, snapshot_table_name

__all__ = ['BasePreview', 'TablePreview', 'SnapshotService', 'preview_base', 'snapshot_table_name']
