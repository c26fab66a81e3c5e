from .part_renderer import (
	HTML_PART,
	PLAIN_FALLBACK_PART,
	PLAIN_PART,
	IPartRenderer,
	JinjaPartRenderer,
	NullPartRenderer,
)

__all__ = [
	"HTML_PART",
	"PLAIN_FALLBACK_PART",
	"PLAIN_PART",
	"IPartRenderer",
	"JinjaPartRenderer",
	"NullPartRenderer",
]
