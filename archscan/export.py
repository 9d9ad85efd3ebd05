"""JSON export of a scanned architecture."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from archscan.model import Architecture

SCHEMA_VERSION = "1.0"


def architecture_to_dict(architecture: Architecture) -> dict[str, Any]:
    """Build the export structure for an architecture."""
    return {
        "schema_version": SCHEMA_VERSION,
        "generated": datetime.now(timezone.utc).isoformat(),
        "name": architecture.name,
        "description": architecture.description,
        "metadata": architecture.metadata,
        "statistics": architecture.statistics(),
        "layers": architecture.layers,
        "components": [c.to_dict() for c in architecture.components.values()],
        "relations": [r.to_dict() for r in architecture.relations],
        "infrastructures": architecture.infrastructures,
        "external_systems": architecture.external_systems,
        "data_flows": architecture.data_flows,
        "security_measures": architecture.security_measures,
    }


def write_architecture(architecture: Architecture, output_path: Path | str) -> Path:
    """Write the architecture as indented JSON, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(architecture_to_dict(architecture), indent=2))
    return output_path
