"""JSON extraction for collaborator output, with one bounded repair attempt."""

import json
import logging
import re
from typing import Any, Optional

from ..errors import CollaboratorParseError

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?[ \t]*\n?")


def strip_code_fences(text: str) -> str:
	"""Remove markdown code fences around a payload."""
	return _CODE_FENCE.sub("", text).strip()


def truncate_to_structure(text: str) -> Optional[str]:
	"""
	Cut text down to its outermost JSON structure.

	Drops anything before the first opening brace/bracket and after the last
	closing one. Returns None when there is no such span.
	"""
	starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
	end = max(text.rfind("}"), text.rfind("]"))
	if not starts or end < 0:
		return None
	start = min(starts)
	if end <= start:
		return None
	return text[start:end + 1]


def parse_json_payload(raw: str) -> Any:
	"""
	Parse JSON produced by a collaborator.

	Raises:
		CollaboratorParseError: If the payload is still malformed after the
			single repair attempt
	"""
	content = strip_code_fences(raw)
	try:
		return json.loads(content)
	except json.JSONDecodeError as e:
		logger.warning("Malformed collaborator payload (%s), attempting repair", e)

	repaired = truncate_to_structure(content)
	if repaired is None or repaired == content:
		raise CollaboratorParseError("No JSON structure found in collaborator output", payload=raw[:500])

	try:
		return json.loads(repaired)
	except json.JSONDecodeError as e:
		logger.error("Could not parse collaborator output: %s", raw[:500])
		raise CollaboratorParseError(f"Collaborator output is not valid JSON: {e}", payload=raw[:500]) from e
