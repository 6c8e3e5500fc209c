"""
Configuration constants for upload service.
"""

UPLOAD_TYPE_AUTO = "auto"
UPLOAD_TYPE_MEDIA = "media_item"
UPLOAD_TYPE_MAINTENANCE = "maint_item"

# Extensions uploaded as maintenance items when the upload type is "auto"
MAINTENANCE_EXTENSIONS = frozenset({".bat", ".cmd", ".py", ".vbs", ".exe", ".zip"})

INIT_ENDPOINT = "fileupload/init"
PART_ENDPOINT = "fileupload/part/{uuid}/{offset}"
COMPLETE_ENDPOINT = "fileupload/complete/{uuid}"
MEDIA_ENDPOINT = "media/{media_id}"

# Part responses with a status at or above this are failures
PART_FAILURE_STATUS = 300
