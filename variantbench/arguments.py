"""
Composition of the variable caller and benchmarking arguments.

:func:`compose` is a pure function: it performs no I/O and returns the same
:class:`ComposedArgs` for the same inputs. Staging a customized model is done
by ``CustomModelStagingStage``; this module only points the caller at the
staged checkpoint.
"""

from typing import List

from .models import ComposedArgs, RunConfig, ToolArgs

# Location of the staged checkpoint inside the caller container
CUSTOMIZED_MODEL_PATH = "/input/model.ckpt"

# Files that make up a checkpoint; staged next to the other inputs
MODEL_FILES = (
    "model.ckpt.data-00000-of-00001",
    "model.ckpt.index",
    "model.ckpt.meta",
)

MAKE_EXAMPLES_BASELINE = "sort_by_haplotypes=true,parse_sam_aux_fields=true"


def make_examples_value(extra: str) -> str:
    """Return the make_examples extra args, always starting with the PacBio baseline."""
    if extra:
        return f"{MAKE_EXAMPLES_BASELINE},{extra}"
    return MAKE_EXAMPLES_BASELINE


def compose(config: RunConfig, tool_args: ToolArgs) -> ComposedArgs:
    """Build the variable argument lists for one run.

    Rules are applied in a fixed order:

    1. customized model -> ``--customized_model /input/model.ckpt``
    2. always ``--make_examples_extra_args`` with the baseline, plus any extra
       make_examples args joined with a comma
    3. call_variants args -> ``--call_variants_extra_args`` verbatim
    4. postprocess_variants args -> ``--postprocess_variants_extra_args`` verbatim
    5. regions -> ``--regions`` for the caller and ``-l`` for hap.py

    Only make_examples is merged with a baseline; the other phases pass the
    caller's value through unchanged.

    Parameters
    ----------
    config : RunConfig
        Run configuration. Fixed flags are not part of the composed lists.
    tool_args : ToolArgs
        Optional settings from the command line

    Returns
    -------
    ComposedArgs
        Caller tokens and hap.py tokens, in a stable order
    """
    pipeline_args: List[str] = []
    eval_args: List[str] = []

    if tool_args.customized_model:
        pipeline_args += ["--customized_model", CUSTOMIZED_MODEL_PATH]

    pipeline_args += [
        "--make_examples_extra_args",
        make_examples_value(tool_args.make_examples_args),
    ]

    if tool_args.call_variants_args:
        pipeline_args += ["--call_variants_extra_args", tool_args.call_variants_args]

    if tool_args.postprocess_variants_args:
        pipeline_args += [
            "--postprocess_variants_extra_args",
            tool_args.postprocess_variants_args,
        ]

    if tool_args.regions:
        pipeline_args += ["--regions", tool_args.regions]
        eval_args += ["-l", tool_args.regions]

    return ComposedArgs(pipeline_args=tuple(pipeline_args), eval_args=tuple(eval_args))
