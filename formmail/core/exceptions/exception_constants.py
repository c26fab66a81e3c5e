# Form level validation messages
RECIPIENTS_REQUIRED = "Recipients are required."
RECIPIENTS_INVALID = "Recipients are invalid."
FROM_REQUIRED = "From is required."
FROM_INVALID = "From is invalid."

# Field level validation messages
FIELD_REQUIRED = "is required."
FIELD_INVALID_EMAIL = "invalid email address."
FIELD_REGEX_MISMATCH = "doesn't match regex ({pattern})"

# Static configuration contract
CONFIG_OPTION_REQUIRED = "is required"
CONFIG_INVALID = "Mail configuration is invalid: {details}"

NOT_EVALUATED = "Submission has not been evaluated yet; await evaluate() first."

# Logged, never shown to visitors
RECIPIENT_CHECK_FAILED = "Attempt to use email that didn't pass the check: {recipient}."
RECIPIENT_CHECK_ERROR = "Attempt to use email that didn't pass the check: {recipient}. Exception: {error}"
RECIPIENT_CHECK_UNSAFE_NAME = "Recipients check skipped, unsafe column name: {name!r}"
REGEX_RULE_INVALID = "Required rule for {field!r} has an invalid regex {pattern!r}: {error}"
BODY_TRANSCODE_FAILED = "A body of a mail message could not be transcoded from {encoding}: {error}"

SUBMISSION_INTRO = "The following information was posted:"
DEFAULT_SUBJECT = "Form Mail from {host}"
