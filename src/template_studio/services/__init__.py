"""Services"""

from template_studio.services.customization import (
    apply_customization,
    render_effective_document,
    save_customization,
)
from template_studio.services.inheritance import merge_documents, resolve_template
from template_studio.services.template_store import (
    create_template,
    delete_template,
    get_template,
    list_templates,
    update_template,
)
from template_studio.services.usage import rate_template, record_event, use_template
from template_studio.services.validation import validate_structure
from template_studio.services.version_ledger import (
    publish_version,
    revert_to_version,
    snapshot_template,
)

__all__ = [
    "apply_customization",
    "render_effective_document",
    "save_customization",
    "merge_documents",
    "resolve_template",
    "create_template",
    "delete_template",
    "get_template",
    "list_templates",
    "update_template",
    "rate_template",
    "record_event",
    "use_template",
    "validate_structure",
    "publish_version",
    "revert_to_version",
    "snapshot_template",
]
