import argparse
import json
import logging
import sys
from pathlib import Path

from ds_pipeline.config import PipelineConfig
from ds_pipeline.pipeline import DistantSupervisionPipeline, PipelineSetupError

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Compile a distant-supervision training corpus.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to pipeline config JSON file.",
    )
    parser.add_argument(
        "--input",
        type=str,
        nargs="+",
        required=True,
        help="Input files or directories (read recursively).",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        required=True,
        help="Directory receiving the MultiR corpus files.",
    )
    parser.add_argument(
        "--documents-dir",
        type=str,
        help="Optional directory to save processed documents for later runs.",
    )
    parser.add_argument(
        "--log",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_data = json.loads(Path(args.config).read_text(encoding="utf-8"))
    config = PipelineConfig.from_dict(config_data)

    pipeline = DistantSupervisionPipeline(config)
    try:
        pipeline.run(args.input, args.output_dir, documents_dir=args.documents_dir)
    except PipelineSetupError as exc:
        logger.error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
