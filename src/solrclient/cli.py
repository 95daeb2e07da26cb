"""
solrclient CLI — Command-Line Interface
=======================================

Command-line interface for common Solr operations.

Usage:
    solrclient --core goddess ping
    solrclient --core goddess search "occupation:Student" --fq "age:17" --limit 5
    solrclient --core goddess get megumin nao_tomori
    solrclient --core goddess build "data/*.jsonl" --batch-size 5000
    solrclient --core goddess delete --query "rate:[* TO 5]"
    solrclient --core goddess commit
    solrclient collections list
    solrclient collections status
    solrclient create goddess --shards 2 --replicas 2
    solrclient drop goddess
    solrclient reload goddess

Connection settings default to the SOLR_* environment variables
(see solrclient.config).
"""

import argparse
import json
import logging
import time
from typing import List, Optional

from .config import SolrClientConfig, basic_auth_header


def get_client(args):
    """Build a client from global args over environment defaults."""
    from .core import SolrClient

    config = SolrClientConfig.from_env(
        host=args.host,
        port=args.port,
        path=args.path,
        core=args.core,
        secure=True if args.secure else None,
    )
    if args.user and args.password:
        config.authorization = basic_auth_header(args.user, args.password)
    return SolrClient(config)


def cmd_ping(args):
    """Ping the core."""
    client = get_client(args)
    response = client.ping_server()
    print(f"Status: {response.get('status', 'unknown')}")
    client.close()


def cmd_search(args):
    """Search the core."""
    client = get_client(args)

    query = client.create_query().set_query(args.query).set_limit(args.limit)
    for fq in args.fq or []:
        query.add_parameter("fq", fq)
    if args.fl:
        query.set_response_fields(args.fl.split(","))
    if args.sort:
        field, _, direction = args.sort.partition(":")
        query.set_sort({field: direction or "asc"})

    start = time.time()
    response = client.search_documents(query)
    elapsed_ms = (time.time() - start) * 1000

    print(f"\nQuery: {args.query}")
    print(f"Found: {response.num_found:,} (showing {len(response.docs)}, in {elapsed_ms:.1f}ms)\n")

    for doc in response.docs:
        print(json.dumps(doc, ensure_ascii=False, default=str))

    client.close()


def cmd_get(args):
    """Fetch documents by id (Real-Time Get)."""
    client = get_client(args)
    response = client.get_documents_by_id(args.ids)
    for doc in response.docs:
        print(json.dumps(doc, ensure_ascii=False, default=str))
    if not response.docs:
        print("No documents found.")
    client.close()


def cmd_build(args):
    """Index documents from JSONL files."""
    from .builder import IndexBuilder

    client = get_client(args)
    builder = IndexBuilder(client, batch_size=args.batch_size)
    stats = builder.add_jsonl_files(pattern=args.pattern, test_limit=args.limit)

    print()
    print("=" * 60)
    print("BUILD COMPLETE")
    print("=" * 60)
    print(f"Total documents: {stats['total_documents']:,}")
    print(f"Total errors: {stats['total_errors']:,}")
    print(f"Batches sent: {stats['batches']:,}")
    print(f"Files processed: {stats['files_processed']}")
    print(f"Average rate: {stats['rate_per_second']:,.0f} documents/second")
    print("=" * 60)

    client.close()


def cmd_delete(args):
    """Delete documents by id or query."""
    if not args.id and not args.query:
        print("Nothing to delete: pass --id or --query.")
        return

    target = f"id {args.id}" if args.id else f"query {args.query}"
    if not args.force:
        confirm = input(f"Delete documents matching {target}? [y/N] ")
        if confirm.lower() != 'y':
            print("Aborted.")
            return

    client = get_client(args)
    if args.id:
        client.delete_by_id(args.id, {"commit": True})
    else:
        client.delete_by_query(args.query, {"commit": True})
    print(f"Deleted documents matching {target}")
    client.close()


def cmd_commit(args):
    """Commit pending changes."""
    client = get_client(args)
    client.commit()
    print("Committed.")
    client.close()


def cmd_collections_list(args):
    """List all collections."""
    from .cluster import ClusterManager

    manager = ClusterManager(get_client(args))
    names = manager.collections()

    print(f"\n{'Collection':<40}")
    print("-" * 40)
    for name in names:
        print(name)

    manager.close()


def cmd_collections_status(args):
    """Show cluster status."""
    from .cluster import ClusterManager

    manager = ClusterManager(get_client(args))
    cluster = manager.cluster_status()

    live_nodes = cluster.get("live_nodes", [])
    print(f"\nLive nodes: {len(live_nodes)}")
    for node in live_nodes:
        print(f"  {node}")

    print(f"\n{'Collection':<30} {'Shards':>8} {'Health':>10}")
    print("-" * 50)
    for name, info in sorted(cluster.get("collections", {}).items()):
        print(f"{name:<30} {len(info.get('shards', {})):>8} {info.get('health', '-'):>10}")

    manager.close()


def cmd_create(args):
    """Create a collection."""
    from .cluster import ClusterManager

    manager = ClusterManager(get_client(args))
    manager.create_collection(
        name=args.name,
        shards=args.shards,
        replicas=args.replicas,
        config_name=args.config
    )

    print(f"Created collection: {args.name}")
    print(f"  Shards: {args.shards}")
    print(f"  Replicas: {args.replicas}")

    manager.close()


def cmd_drop(args):
    """Delete a collection."""
    from .cluster import ClusterManager

    if not args.force:
        confirm = input(f"Delete collection '{args.name}'? [y/N] ")
        if confirm.lower() != 'y':
            print("Aborted.")
            return

    manager = ClusterManager(get_client(args))
    manager.delete_collection(args.name)
    print(f"Deleted collection: {args.name}")
    manager.close()


def cmd_reload(args):
    """Reload a collection."""
    from .cluster import ClusterManager

    manager = ClusterManager(get_client(args))
    manager.reload_collection(args.name)
    print(f"Reloaded collection: {args.name}")
    manager.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solrclient",
        description="Command-line access to an Apache Solr server"
    )

    # Global options
    parser.add_argument("--host", help="Solr host", default=None)
    parser.add_argument("--port", type=int, help="Solr port", default=None)
    parser.add_argument("--path", help="Solr base path (default /solr)", default=None)
    parser.add_argument("--core", help="Core or collection name", default=None)
    parser.add_argument("--secure", action="store_true", help="Use HTTPS")
    parser.add_argument("--user", help="Basic auth username", default=None)
    parser.add_argument("--password", help="Basic auth password", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Log requests")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("ping", help="Ping the core")

    # search command
    search_parser = subparsers.add_parser("search", help="Search the core")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--fq", action="append", help="Filter query (repeatable)")
    search_parser.add_argument("--fl", help="Comma-separated response fields")
    search_parser.add_argument("--sort", help="Sort as field:asc or field:desc")
    search_parser.add_argument("--limit", type=int, default=10, help="Max results")

    # get command
    get_parser = subparsers.add_parser("get", help="Fetch documents by id")
    get_parser.add_argument("ids", nargs="+", help="Document ids")

    # build command
    build_parser_ = subparsers.add_parser("build", help="Index JSONL files")
    build_parser_.add_argument("pattern", help="Glob pattern for JSONL files")
    build_parser_.add_argument("--batch-size", type=int, default=5000, help="Batch size")
    build_parser_.add_argument("--limit", type=int, help="Limit documents (for testing)")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete documents")
    delete_parser.add_argument("--id", help="Document id")
    delete_parser.add_argument("--query", help="Delete query")
    delete_parser.add_argument("-f", "--force", action="store_true", help="Skip confirmation")

    subparsers.add_parser("commit", help="Commit pending changes")

    # collections command
    collections_parser = subparsers.add_parser("collections", help="Collection operations")
    collections_sub = collections_parser.add_subparsers(dest="collections_cmd")
    collections_sub.add_parser("list", help="List collections")
    collections_sub.add_parser("status", help="Show cluster status")

    # create command
    create_parser = subparsers.add_parser("create", help="Create a collection")
    create_parser.add_argument("name", help="Collection name")
    create_parser.add_argument("--shards", type=int, default=1, help="Number of shards")
    create_parser.add_argument("--replicas", type=int, default=1, help="Replicas per shard")
    create_parser.add_argument("--config", help="Configset name")

    # drop command
    drop_parser = subparsers.add_parser("drop", help="Delete a collection")
    drop_parser.add_argument("name", help="Collection name")
    drop_parser.add_argument("-f", "--force", action="store_true", help="Skip confirmation")

    # reload command
    reload_parser = subparsers.add_parser("reload", help="Reload a collection")
    reload_parser.add_argument("name", help="Collection name")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    commands = {
        "ping": cmd_ping,
        "search": cmd_search,
        "get": cmd_get,
        "build": cmd_build,
        "delete": cmd_delete,
        "commit": cmd_commit,
        "create": cmd_create,
        "drop": cmd_drop,
        "reload": cmd_reload,
    }

    if args.command == "collections":
        if args.collections_cmd == "list":
            cmd_collections_list(args)
        elif args.collections_cmd == "status":
            cmd_collections_status(args)
        else:
            parser.parse_args(["collections", "--help"])
    elif args.command in commands:
        commands[args.command](args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
