"""MERGE script generation for traversed rows."""

from upsert.assembler import (
    ScriptAssembler,
    assemble_script,
    needs_partial_insert_guard,
    needs_scoped_program,
)
from upsert.sequences import (
    SequenceMapping,
    SequenceStore,
    generator_candidates,
)
from upsert.statement import generate_merge
from upsert.variables import (
    Generators,
    Variables,
    allocate_variables,
    substitutions,
    variable_name,
)
from upsert.writer import write_script

__all__ = [
    "Generators",
    "ScriptAssembler",
    "SequenceMapping",
    "SequenceStore",
    "Variables",
    "allocate_variables",
    "assemble_script",
    "generate_merge",
    "generator_candidates",
    "needs_partial_insert_guard",
    "needs_scoped_program",
    "substitutions",
    "variable_name",
    "write_script",
]
