from .newick_parser import TreeFormatError, parse_newick, read_newick, write_newick
