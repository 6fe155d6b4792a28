"""Metadata keys recognised by the rendering pipeline."""

from __future__ import annotations


# metadata
KEY_FORMAT = "format"
KEY_LANG = "lang"
KEY_DATE = "date"
KEY_DATE_FORMAT = "date-format"
KEY_DATE_FORMATTED = "date-formatted"
KEY_THEME = "theme"
KEY_SERVER = "server"
KEY_METADATA_FILES = "metadata-files"
KEY_VALIDATE_YAML = "validate-yaml"
KEY_RESOURCES = "resources"
KEY_LINK_EXTERNAL_NEWWINDOW = "link-external-newwindow"
KEY_BIBLIOGRAPHY = "bibliography"
KEY_CSS = "css"
KEY_HEADER_INCLUDES = "header-includes"
KEY_INCLUDE_BEFORE = "include-before"
KEY_INCLUDE_AFTER = "include-after"

# execute
KEY_EXECUTE = "execute"
KEY_EXECUTE_ENABLED = "enabled"
KEY_EXECUTE_DAEMON = "daemon"
KEY_EXECUTE_DAEMON_RESTART = "daemon-restart"
KEY_EXECUTE_DEBUG = "debug"
KEY_ENGINE = "engine"
KEY_CACHE = "cache"
KEY_FREEZE = "freeze"
KEY_ECHO = "echo"
KEY_KEEP_MD = "keep-md"

# pandoc
KEY_TO = "to"
KEY_FROM = "from"
KEY_WRITER = "writer"
KEY_OUTPUT_FILE = "output-file"
KEY_SELF_CONTAINED = "self-contained"
KEY_EMBED_RESOURCES = "embed-resources"
KEY_STANDALONE = "standalone"
KEY_TEMPLATE = "template"
KEY_FILTERS = "filters"
KEY_PDF_ENGINE = "pdf-engine"
KEY_INCLUDE_IN_HEADER = "include-in-header"
KEY_INCLUDE_BEFORE_BODY = "include-before-body"
KEY_INCLUDE_AFTER_BODY = "include-after-body"
KEY_SLIDE_LEVEL = "slide-level"
KEY_REFERENCE_LOCATION = "reference-location"
KEY_HTML_MATH_METHOD = "html-math-method"

# render
KEY_OUTPUT_EXT = "output-ext"
KEY_KEEP_TEX = "keep-tex"
KEY_TBL_COLWIDTHS = "tbl-colwidths"

# project
KEY_PROJECT = "project"
KEY_PROJECT_TYPE = "type"
KEY_PROJECT_LIB_DIR = "lib-dir"
KEY_PROJECT_OUTPUT_DIR = "output-dir"

PROJECT_CONFIG_FILES = ("_docsmith.yml", "_docsmith.yaml")
DIRECTORY_METADATA_FILES = ("_metadata.yml", "_metadata.yaml")
PROJECT_SCRATCH_DIR = ".docsmith"
PROJECT_FREEZE_DIR = "_freeze"
FREEZE_EXECUTE_RESULTS = "execute-results"

INCLUDE_KEYS = (
    KEY_INCLUDE_IN_HEADER,
    KEY_INCLUDE_BEFORE_BODY,
    KEY_INCLUDE_AFTER_BODY,
)
