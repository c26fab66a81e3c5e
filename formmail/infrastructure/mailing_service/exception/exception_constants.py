TEMPLATES_DISABLED = "MAIL_TEMPLATES_PARENT_DIR is not configured; cannot load page parts from disk."
TEMPLATE_RENDER_FAILED = "Page part '{name}' could not be rendered: {error}"
ATTACHMENT_TOO_LARGE = "Attachment '{name}' is {size} bytes, over the limit of {limit} bytes."
SEND_TIMED_OUT = "Sending the mail timed out after {timeout}s."
SEND_FAILED = "Sending the mail failed: {error}"
