"""
Command line utilities for phylodraw.
"""
import argparse
import json
import logging
import sys

from . import __version__
from .exporting import ExportOptions, ExportType, create_exporter, export_type_from_path
from .parsers import TreeFormatError, read_newick
from .styles import BranchColoringType, TreeStyle

logger = logging.getLogger(__name__)


def exit(message):
    sys.exit(message)


def load_style(path):
    if path is None:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return TreeStyle.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        exit(f"Style error: {e}")


def load_tree(args):
    try:
        trees = read_newick(args.input, load_style(getattr(args, "style", None)))
    except (OSError, TreeFormatError) as e:
        exit(f"Load error: {e}")
    if not 0 <= args.index < len(trees):
        exit(f"Load error: tree index {args.index} out of range ({len(trees)} tree(s) in {args.input})")
    tree = trees[args.index]

    try:
        if args.reroot:
            anchor = tree.get_common_ancestor(args.reroot)
            tree = tree.rerooted(anchor, args.rooted)
        if args.order:
            tree.order_by_length(descending=args.order == "desc")
    except ValueError as e:
        exit(f"Edit error: {e}")
    return tree


def run_render(args):
    tree = load_tree(args)
    try:
        export_type = ExportType(args.format) if args.format else export_type_from_path(args.output)
    except ValueError as e:
        exit(str(e))
    options = ExportOptions(branch_coloring=BranchColoringType(args.branch_coloring), background=args.background)
    try:
        create_exporter(export_type).export(tree, args.output, options)
    except ImportError as e:
        exit(str(e))
    logger.info("Wrote %s", args.output)


def run_newick(args):
    tree = load_tree(args)
    print(tree.to_newick())


def run_layout(args):
    from .drawing import PositionManager

    tree = load_tree(args)
    frame = PositionManager(tree).to_frame()
    frame.to_csv(sys.stdout, index=False)


def run_info(args):
    tree = load_tree(args)
    print(f"{'leaves:':<24}{sum(1 for _ in tree.get_all_leaves())}")
    print(f"{'clades:':<24}{len(tree.get_all_clades())}")
    print(f"{'internal (incl. root):':<24}{len(tree.get_all_bipartitions())}")
    print(f"{'rooted:':<24}{tree.is_rooted}")


def add_tree_arguments(parser):
    parser.add_argument("input", help="Newick file")
    parser.add_argument("--index", "-i", type=int, default=0, help="Index of the tree in the file")
    parser.add_argument("--reroot", nargs="+", metavar="TAXON", help="Reroot on the smallest clade holding these taxa")
    parser.add_argument(
        "--rooted",
        action="store_true",
        help="Split the branch above the reroot clade instead of rooting at the clade itself",
    )
    parser.add_argument("--order", choices=["asc", "desc"], help="Order children by subtree length")


def get_phylodraw_parser():
    top_parser = argparse.ArgumentParser(prog="phylodraw", description="Render and edit phylogenetic trees.")
    top_parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    top_parser.add_argument(
        "--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity"
    )
    subparsers = top_parser.add_subparsers(dest="subcommand")
    subparsers.required = True

    parser = subparsers.add_parser("render", help="Draw a tree as SVG, PDF or PNG")
    add_tree_arguments(parser)
    parser.add_argument("output", help="Output file; the format follows the extension unless --format is given")
    parser.add_argument("--format", "-f", choices=[t.value for t in ExportType])
    parser.add_argument("--style", help="JSON file with tree style settings")
    parser.add_argument(
        "--branch-coloring", default=BranchColoringType.BOTH.value, choices=[t.value for t in BranchColoringType]
    )
    parser.add_argument("--background", help="PNG background color (transparent by default)")
    parser.set_defaults(runner=run_render)

    parser = subparsers.add_parser("newick", help="Print the (edited) tree as Newick")
    add_tree_arguments(parser)
    parser.set_defaults(runner=run_newick)

    parser = subparsers.add_parser("layout", help="Print the computed coordinates as CSV")
    add_tree_arguments(parser)
    parser.add_argument("--style", help="JSON file with tree style settings")
    parser.set_defaults(runner=run_layout)

    parser = subparsers.add_parser("info", help="Print a summary of the tree")
    add_tree_arguments(parser)
    parser.set_defaults(runner=run_info)

    return top_parser


def phylodraw_main(arg_list=None):
    parser = get_phylodraw_parser()
    args = parser.parse_args(arg_list)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    args.runner(args)


if __name__ == "__main__":
    phylodraw_main()
