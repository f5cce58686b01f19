"""Intake questionnaire constants shared across the SDK.

These values are referenced by the resolvers, the wizard, and the catalog.
The answer-key names mirror ids declared in ``v1/sections.yaml``; the
resolvers look them up by string identity, so renaming a field in the YAML
requires updating the constant here as well.

Storage-related values can be overridden via environment variables so that
deployments can adjust upload policy without code changes.
"""

import os

# The exact ``taxType`` option that unlocks the business-category sections.
# Any other value (including no answer at all) keeps them out of the wizard.
TAX_TYPE_FIELD = "taxType"
BUSINESS_TAX_TYPE = "Personal + Business (Self-Employed/Freelance)"

# Cross-section special case: a field in the income section gates the
# rental expenses section.
RENTAL_SECTION_ID = "rental_expenses"
RENTAL_INCOME_FIELD = "rentalIncome"

# Per-section document lists live in the answer set under "<section>_files".
FILES_SUFFIX = "_files"

# Shown in place of a section's fields when its gating question is answered "No".
SKIPPED_PLACEHOLDER = 'You selected "No" for this section. You can move to the next step.'

# Review/export wording for a gated-off section.
SKIPPED_REVIEW_VALUE = "Skipped (User selected No)"

FIELD_TYPES: tuple[str, ...] = (
    "text",
    "number",
    "currency",
    "date",
    "boolean",
    "textarea",
    "select",
    "repeatable-group",
)

# Wizard button labels for the forward transition.
CONTINUE_LABEL = "Continue"
SUBMIT_LABEL = "Submit"

# --- Document uploads ---
# Overridable via the MAX_UPLOAD_BYTES env var.
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(25 * 1024 * 1024)))

ALLOWED_UPLOAD_EXTENSIONS: set[str] = {
    ".pdf", ".jpg", ".jpeg", ".png", ".doc", ".docx", ".xls", ".xlsx",
}
