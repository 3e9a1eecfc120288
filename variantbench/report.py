# File: variantbench/report.py
# Location: variantbench/variantbench/report.py

from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from jinja2 import Environment, FileSystemLoader

from .models import ComposedArgs, ExecutionRecord, RunConfig
from .utils import format_duration
from .version import __version__


def generate_run_report(
    run_config: RunConfig,
    records: List[ExecutionRecord],
    output_path: Path,
    composed_args: Optional[ComposedArgs] = None,
    image: Optional[str] = None,
    summary: Optional[pd.DataFrame] = None,
) -> Path:
    """
    Generate an HTML report of a benchmark run.

    Parameters
    ----------
    run_config : RunConfig
        Configuration of the run.
    records : List[ExecutionRecord]
        Execution records of the external invocations, in run order.
    output_path : Path
        Where the HTML file is written.
    composed_args : ComposedArgs, optional
        Variable caller and hap.py arguments.
    image : str, optional
        Caller image reference.
    summary : pd.DataFrame, optional
        hap.py summary as loaded by :func:`variantbench.benchmark.load_summary`.

    Returns
    -------
    Path
        The written report.
    """
    templates_dir = Path(__file__).parent / "templates"
    if not templates_dir.exists():
        raise FileNotFoundError(f"Templates directory not found at: {templates_dir}")

    env = Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=True)
    template = env.get_template("run_report.html")

    settings: Dict[str, Any] = {
        "Base directory": run_config.base_dir,
        "Reference": run_config.reference,
        "Reads": run_config.bam,
        "Truth VCF": run_config.truth_vcf,
        "Confidence regions": run_config.truth_bed,
        "Shards": run_config.num_shards,
        "Model type": run_config.model_type,
        "Image": image or "",
        "hap.py image": run_config.happy_image,
    }

    record_rows = [
        {
            "name": record.name,
            "status": "OK" if record.succeeded else f"FAILED ({record.returncode})",
            "duration": format_duration(record.duration),
            "log": str(record.log_path) if record.log_path else "",
        }
        for record in records
    ]

    metric_rows = summary.to_dict(orient="records") if summary is not None else []

    html_content = template.render(
        version=__version__,
        settings=settings,
        pipeline_args=list(composed_args.pipeline_args) if composed_args else [],
        eval_args=list(composed_args.eval_args) if composed_args else [],
        records=record_rows,
        metrics=metric_rows,
    )

    output_path = Path(output_path)
    with open(output_path, "w", encoding="utf-8") as out_f:
        out_f.write(html_content)
    return output_path
