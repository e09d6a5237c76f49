"""Business logic services."""

from .files import (
    FileDeletionOutcome,
    delete_file,
    get_file,
    get_file_path,
    list_files,
    register_file,
)
from .storage import (
    UploadTooLargeError,
    delete_blob,
    ensure_upload_dir,
    store_upload,
)
from .whitelist import (
    add_whitelist_email,
    is_valid_email_shape,
    is_whitelisted,
    list_whitelist_emails,
    remove_whitelist_email,
)

__all__ = [
    "FileDeletionOutcome",
    "register_file",
    "list_files",
    "get_file",
    "get_file_path",
    "delete_file",
    "UploadTooLargeError",
    "ensure_upload_dir",
    "store_upload",
    "delete_blob",
    "is_valid_email_shape",
    "is_whitelisted",
    "add_whitelist_email",
    "remove_whitelist_email",
    "list_whitelist_emails",
]
