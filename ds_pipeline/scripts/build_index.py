"""
Prebuild the term index cache used by the index-backed lookups.

Alias sources hold ``entity<TAB>alias`` lines; relation sources hold
``entity1<TAB>relation<TAB>entity2`` lines. Sources may be files or
directories. Point the ``index`` candidate lookup or relation store at the
same sources and cache directory to reuse the built index.
"""
import argparse
import logging

from ds_pipeline.linkers.index import build_alias_index
from ds_pipeline.relations.index import build_relation_index

logger = logging.getLogger(__name__)

BUILDERS = {
    "alias": build_alias_index,
    "relation": build_relation_index,
}


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Build alias or relation term index caches."
    )
    ap.add_argument("kind", choices=sorted(BUILDERS), help="Type of fact table")
    ap.add_argument("sources", nargs="+", help="TSV files or directories")
    ap.add_argument(
        "--cache-dir",
        default=".ds_cache",
        help="Directory receiving the pickled index",
    )
    ap.add_argument(
        "--max-hits",
        type=int,
        default=1000,
        help="Maximum entries scored per query",
    )
    ap.add_argument("--log", default="INFO", help="Logging level")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log)
    index = BUILDERS[args.kind](args.sources, cache_dir=args.cache_dir, max_hits=args.max_hits)
    logger.info(f"{args.kind} index ready with {len(index)} entries in {args.cache_dir}")


if __name__ == "__main__":
    main()
