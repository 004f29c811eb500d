import argparse
import logging
import sys
from colorama import init, Fore

from .config import Config
from .errors import PreprocessorError, RemapFailedError
from .remap import MappedSources, build_remapper
from .task import PreprocessTask

init(autoreset=True)

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="commentpp",
        description="commentpp - comment-embedded conditional compilation for multi-variant sources")
    parser.add_argument("source", help="Path to the source tree to preprocess")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("-o", "--output", help="Directory to write the preprocessed tree to")
    target.add_argument("--inplace", action="store_true", help="Rewrite the source tree in place")
    parser.add_argument("--vars", help="Directive variables (e.g. 'MC=11202,FABRIC=1')")
    parser.add_argument("--config", help="Path to a JSON file with vars and keyword sets")
    parser.add_argument("--remapped", help="Path to a JSON file of already remapped sources")
    parser.add_argument("--mapping", help="Identifier mapping table to remap with")
    parser.add_argument("--source-mappings", help="Mapping table of the source variant")
    parser.add_argument("--destination-mappings", help="Mapping table of the destination variant")
    parser.add_argument("--reverse-mapping", action="store_true", help="Apply --mapping backwards")
    parser.add_argument("--build-dir", help="Where to write the merged mapping table")
    parser.add_argument("-j", "--jobs", type=int, default=1, help="Files to process in parallel")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    try:
        # 1. Configuration
        config = Config()
        if args.config:
            config.load_file(args.config)
        if args.vars:
            config.parse_vars(args.vars)

        # 2. Remapping
        if args.remapped:
            remapper = MappedSources.load(args.remapped)
        else:
            remapper = build_remapper(
                mapping=args.mapping,
                source_mappings=args.source_mappings,
                destination_mappings=args.destination_mappings,
                reverse=args.reverse_mapping,
                build_dir=args.build_dir,
            )

        # 3. Processing
        task = PreprocessTask(
            variables=config.variables,
            keywords=config.keywords,
            remapper=remapper,
            jobs=max(1, args.jobs),
        )
        if args.inplace:
            task.inplace(args.source)
        else:
            task.source = args.source
            task.generated = args.output

        print(Fore.CYAN + f"Preprocessing {args.source} with {len(config.variables)} variables")
        report = task.run()
    except RemapFailedError as e:
        print(Fore.RED + str(e))
        return 1
    except (PreprocessorError, OSError) as e:
        print(Fore.RED + f"Error: {e}")
        return 1

    print(Fore.GREEN + f"Done. Preprocessed {report.converted} files, copied {report.copied}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
