"""Configuration constants for the FRITZ!Box NAS client."""

import os

DEFAULT_ADDRESS = "http://fritz.box"
# Credentials and address can also be supplied via FRITZ_* env vars
ENV_ADDRESS = os.environ.get("FRITZ_ADDRESS", DEFAULT_ADDRESS)
ENV_USER = os.environ.get("FRITZ_USER", "")
ENV_PASSWORD = os.environ.get("FRITZ_PASSWORD", "")

LOGIN_PATH      = "login_sid.lua?version=2"
NAS_API_PATH    = "nas/api/data.lua"
NAS_GET_PATH    = "nas/cgi-bin/luacgi_notimeout"
NAS_UPLOAD_PATH = "nas/cgi-bin/nasupload_notimeout"
NAS_SCRIPT_PATH = "/api/data.lua"   # 'script' parameter of the download CGI

AUTH_DEADLINE  = 30    # seconds for the whole login handshake / logout
READ_DEADLINE  = 30    # seconds per browse / download / upload call
WRITE_DEADLINE = 60    # seconds per mutating call (create_dir, rename, delete, move)

READ_CHUNK_SIZE = 64 * 1024

# A SID of all zeros means the device did not accept the login
INVALID_SID = "0000000000000000"

CONTENT_TYPE_XML  = "text/xml"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"

# Multipart field name the upload CGI reads the file from
UPLOAD_FIELD = "UploadFile"

BROWSE_DEFAULTS = {
    "sorting": "+filename",
    "limit":   "100",
}

USER_AGENT = "fritz-nas/1.0 (+python-requests)"
