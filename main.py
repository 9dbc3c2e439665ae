from rich.pretty import pprint

from argosy import *


@parser("fetch", help="fetch remote files into a local cache", shell=True, colorful=True)
def fetch(builder):
    builder.add_flag("-n", "--dryrun", help="don't actually download anything")
    builder.add_option("-o", "--output", help="directory to store files in", default="cache")
    builder.add_argument("urls", nargs=UNLIMITED, help="addresses to fetch")

    @builder.run
    def download(result):
        for url in result.urls:
            pprint(f"{'would fetch' if result.dryrun else 'fetching'} {url} -> {result.output}")

    @builder.command(help="inspect or clear the local cache")
    def cache(sub):
        sub.add_flag("--clear", help="remove every cached file")
        sub.add_argument("pattern", default="*")

        @sub.run
        def show(result):
            pprint(dict(result))


if __name__ == '__main__':
    pprint(fetch.schema)
    fetch.print_help()
    fetch.run()
