from minres.packaging.archive import (
    DEFAULT_ROOT_FOLDER,
    PackagingReport,
    archive_entry_name,
    build_archive,
    process_task,
)

__all__ = [
    "DEFAULT_ROOT_FOLDER",
    "PackagingReport",
    "archive_entry_name",
    "build_archive",
    "process_task",
]
