"""
Configuration constants to replace magic strings throughout the migration
"""

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Source file probing (order matters: first hit wins)
SOURCE_FILE_EXTENSIONS = (".ts", ".js")
PARSEABLE_FILE_EXTENSIONS = (".ts", ".js", ".tsx", ".jsx")
INDEX_FILE_STEM = "index"
DECLARATION_FILE_SUFFIX = ".d.ts"

# Import source defaults
DEFAULT_EMBER_DATA_SOURCE = "@ember-data/model"
WARP_DRIVE_MODEL_SOURCE = "@warp-drive/model"
FRAGMENT_DECORATOR_SOURCE = "ember-data-model-fragments/attributes"
FRAGMENT_BASE_SOURCE = "ember-data-model-fragments/fragment"
DEFAULT_MIXIN_SOURCE = "@ember/object/mixin"
COMPUTED_SOURCES = ("@ember/object", "@ember/object/computed")

DEFAULT_FIELD_DECLARATION_SOURCES = (
    DEFAULT_EMBER_DATA_SOURCE,
    WARP_DRIVE_MODEL_SOURCE,
    FRAGMENT_DECORATOR_SOURCE,
)

# Field-declaring calls recognized from the configured sources
FIELD_DECLARATION_NAMES = ("attr", "belongsTo", "hasMany", "fragment", "fragmentArray", "array")

# Mixin factory methods (`Mixin.create(...)`, `Mixin.createWithMixins(...)`)
MIXIN_FACTORY_METHODS = ("create", "createWithMixins")
EXTEND_METHOD = "extend"

# Callback residue that never becomes a behavior
SKIP_METHOD_NAMES = ("after",)

# Generated file naming
SCHEMA_FILE_SUFFIX = ".schema"
EXTENSION_FILE_SUFFIX = ".ext"
DEFAULT_TRAITS_IMPORT = "../traits"
DEFAULT_RESOURCES_DIR = "app/data/resources"
DEFAULT_TRAITS_DIR = "app/data/traits"
EXTENSION_SIGNATURE_SUFFIX = "Signature"
MODEL_NAME_SUFFIX = "-model"

# WarpDrive type imports
WARP_DRIVE_PREFIX = "@warp-drive"
WARP_DRIVE_MIRROR_PREFIX = "@warp-drive-mirror"
TYPE_SYMBOL_IMPORT = "@warp-drive/core/types/symbols"
MODEL_PRIVATE_TYPES_IMPORT = "@warp-drive/legacy/model/-private"
TYPE_SYMBOL = "Type"

# Attribute transform types with a direct TypeScript equivalent
BUILT_IN_TYPE_MAPPINGS = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "date": "Date",
}
UNKNOWN_TYPE = "unknown"

# Schema object constants
IDENTITY_FIELD = {"kind": "@id", "name": "id"}
LEGACY_TRAIT_MODE = "legacy"
FRAGMENT_TYPE_PREFIX = "fragment:"
ARRAY_TYPE_PREFIX = "array:"
FRAGMENT_OBJECT_EXTENSIONS = ("ember-object", "fragment")
FRAGMENT_ARRAY_EXTENSIONS = ("ember-object", "ember-array-like", "fragment-array")

# Members every record inherits from Model; declared on intermediate traits so
# extension code type-checks against them.
MODEL_BASE_PROPERTIES = (
    ("isNew", "boolean", True),
    ("hasDirtyAttributes", "boolean", True),
    ("isDeleted", "boolean", True),
    ("isSaving", "boolean", True),
    ("isValid", "boolean", True),
    ("isError", "boolean", True),
    ("isLoaded", "boolean", True),
    ("isEmpty", "boolean", True),
    ("errors", "Errors", True),
    ("save", "(options?: Record<string, unknown>) => Promise<this>", False),
    ("reload", "(options?: Record<string, unknown>) => Promise<this>", False),
    ("deleteRecord", "() => void", False),
    ("unloadRecord", "() => void", False),
    ("destroyRecord", "(options?: Record<string, unknown>) => Promise<this>", False),
    ("rollbackAttributes", "() => void", False),
    ("belongsTo", "(name: string) => BelongsToReference", False),
    ("hasMany", "(name: string) => HasManyReference", False),
    ("serialize", "(options?: Record<string, unknown>) => unknown", False),
)

# Code generation layout
INDENT = "  "
