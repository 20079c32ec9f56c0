"""HFP state rule table.

The table maps raw stack updates to semantic events and is data, not
code: an ordered JSON list of ``{"inflow": {...}, "outflow": {...}}``
objects. The package ships ``hfp_statemap.json``; deployments may point
``YodaConfig.hfp_rules_path`` at their own file when the stack reports
combinations the built-in table does not cover.

Every built-in rule names a single field, which suits stacks that send
only the fields that changed. A stack that sends the full vector on each
update matches several of them at once and re-emits the unchanged states
alongside the new one; such deployments should supply a table of
multi-field rules.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pyyoda.exceptions import YodaConfigError
from pyyoda.models.hfp import StateFilter, StateRule

_logger = logging.getLogger(__name__)

_PACKAGED_STATEMAP = "hfp_statemap.json"


def parse_state_rules(entries: Iterable[Mapping[str, Any]]) -> list[StateRule]:
    """Validate raw rule entries, keeping their order.

    Unknown field names inside ``inflow`` are rejected, since a typo there
    would silently turn into a wildcard.
    """
    known_fields = set(StateFilter.model_fields)
    rules: list[StateRule] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise YodaConfigError(f"State rule #{index} is not an object")
        inflow = entry.get("inflow")
        if not isinstance(inflow, Mapping):
            raise YodaConfigError(f"State rule #{index} has no inflow object")
        unknown = set(inflow) - known_fields
        if unknown:
            raise YodaConfigError(f"State rule #{index} has unknown inflow fields: {sorted(unknown)}")
        try:
            rules.append(StateRule.model_validate(dict(entry)))
        except ValidationError as exc:
            raise YodaConfigError(f"State rule #{index} is invalid: {exc}") from exc
    return rules


def load_state_rules(path: str | Path | None = None) -> list[StateRule]:
    """Load the rule table from *path*, or the packaged table when ``None``."""
    if path is None:
        text = resources.files("pyyoda.bluetooth").joinpath(_PACKAGED_STATEMAP).read_text(encoding="utf-8")
        source = _PACKAGED_STATEMAP
    else:
        source = str(path)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise YodaConfigError(f"Cannot read state rules {source}: {exc}") from exc

    try:
        entries = json.loads(text)
    except json.JSONDecodeError as exc:
        raise YodaConfigError(f"State rules {source} are not valid JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise YodaConfigError(f"State rules {source} must be a JSON array")

    rules = parse_state_rules(entries)
    _logger.debug("Loaded %d HFP state rules from %s", len(rules), source)
    return rules
