"""
Result Export - Line-delimited JSON output for per-domain results

Each DomainResult becomes one camelCase JSON object per line, both on stdout
and in the results file of the output directory.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from ..schemas import DomainResult


def result_to_json_line(result: DomainResult) -> str:
    return json.dumps(result.to_record(), ensure_ascii=False)


class ResultExporter:
    """Writes DomainResult records as JSONL into an output directory."""

    def __init__(self, output_dir: Union[str, Path] = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def to_jsonl(
        self,
        results: Iterable[DomainResult],
        filename: str = "results.jsonl",
        echo: Optional[TextIO] = None,
    ) -> Path:
        """
        Append results to a JSONL file.

        Args:
            results: Per-domain results
            filename: File name inside the output directory
            echo: Optional stream that also receives every line (e.g. sys.stdout)

        Returns:
            Path to the JSONL file
        """
        path = self.output_dir / filename
        lines: List[str] = [result_to_json_line(r) for r in results]
        with open(path, 'a', encoding='utf-8') as f:
            for line in lines:
                f.write(line)
                f.write("\n")
                if echo is not None:
                    print(line, file=echo)
        return path
