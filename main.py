from rich.pretty import pprint

from clispec import *

parser = Parser({
    "name": "mytool",
    "summary": "Example tool",
    "version": "0.1.0",
    "options": [
        {"id": "verbose", "short": "v", "long": "verbose", "kind": "count", "help": "Increase verbosity"},
        {"id": "config", "short": "c", "long": "config", "kind": "value", "metavar": "FILE", "help": "Config file"},
        {"id": "dry_run", "long": "dry-run", "negatable": True, "help": "Do not apply changes"},
    ],
    "subcommands": [
        {
            "name": "run",
            "aliases": ["r"],
            "summary": "Run a target",
            "options": [{"id": "jobs", "short": "j", "long": "jobs", "kind": "value", "type": "int", "default": 1}],
            "positionals": [{"id": "target", "required": True, "help": "Target to run"}],
        },
    ],
    "examples": [("mytool run all", "Run every target")],
})


if __name__ == '__main__':
    pprint(invoke(parser))
