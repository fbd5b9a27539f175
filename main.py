from rich.pretty import pprint

from clargs import *

registry = create("copy", "copy a file somewhere else", shell=True, colorful=True)
registry.add_flag("v", "verbose", "talk more")
registry.add_int("n", "count", descr="how many copies", default=1)
registry.add_double("r", "ratio", descr="compression ratio", default=0.5)
registry.add_string("o", "output", metavar="FILE", descr="output file")
registry.add_positional("src", "source file", required=True)
registry.add_positional("dst", "destination file")


if __name__ == '__main__':
    invoke(registry)
    pprint(registry)
