"""Plan dependency graph construction and ordering.

- references: ``{{stepN}}`` token scanning, rewriting and resolution
- synthesizer: auto-inserted content generation steps
- renumber: dense step ids with consistent reference rewriting
- layers: memoized topological depth and layer grouping
"""

from plangraph.graph.layers import (
    apply_sequential_dependencies,
    compute_depths,
    compute_layers,
    find_dangling_dependencies,
    layer_index,
)
from plangraph.graph.references import (
    display_dependencies,
    extract_data_dependencies,
    resolve_references,
    rewrite_references,
    sort_step_ids,
)
from plangraph.graph.renumber import renumber_steps
from plangraph.graph.synthesizer import (
    auto_insert_content_steps,
    has_prior_content_step,
)

__all__ = [
    "apply_sequential_dependencies",
    "auto_insert_content_steps",
    "compute_depths",
    "compute_layers",
    "display_dependencies",
    "extract_data_dependencies",
    "find_dangling_dependencies",
    "has_prior_content_step",
    "layer_index",
    "renumber_steps",
    "resolve_references",
    "rewrite_references",
    "sort_step_ids",
]
