from .recipient_lookup import (
	IRecipientLookup,
	LookupResult,
	StaticRecipientLookup,
	TortoiseRecipientLookup,
	is_safe_column_name,
)

__all__ = [
	"IRecipientLookup",
	"LookupResult",
	"StaticRecipientLookup",
	"TortoiseRecipientLookup",
	"is_safe_column_name",
]
