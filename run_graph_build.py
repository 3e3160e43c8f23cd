# /run_graph_build.py

import argparse
import json
import sys
from dotenv import load_dotenv

from relgraph.database import DataAccessError, InMemoryCompanyStore, Neo4jCompanyStore
from relgraph.focus import filter_graph, select_focus_subgraph
from relgraph.graph_builder import build_graph_data
from relgraph.logger import get_logger
from relgraph.models import LINK_TYPES, NODE_TYPES, FocusFilters, GraphBuildOptions

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build the company relationship graph and print it as JSON.")
    parser.add_argument("--snapshot", help="JSON company snapshot to read instead of Neo4j")
    parser.add_argument("--company-id", action="append", dest="company_ids", help="Company to include (repeatable, default: all approved)")
    parser.add_argument("--focus", help="Node id to focus on (ego network)")
    parser.add_argument("--max-depth", type=int, default=2, help="Focus depth, 0-2 (default: 2)")
    parser.add_argument("--no-people", action="store_true", help="Skip free-text founder/investor extraction")
    parser.add_argument("--no-partnerships", action="store_true", help="Skip partnership links")
    parser.add_argument("--no-data-centers", action="store_true", help="Skip data center nodes and links")
    parser.add_argument("--hide-node", action="append", default=[], choices=NODE_TYPES, help="Node type to hide (repeatable)")
    parser.add_argument("--hide-link", action="append", default=[], choices=LINK_TYPES, help="Link type to hide (repeatable)")
    parser.add_argument("--search", help="Only keep nodes whose name contains this text")
    parser.add_argument("--output", help="Write JSON here instead of stdout")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Builds the graph from a snapshot file or the Neo4j company store and writes it out.
    """
    load_dotenv()
    args = parse_args(argv)

    options = GraphBuildOptions(
        include_people=not args.no_people,
        include_partnerships=not args.no_partnerships,
        include_data_centers=not args.no_data_centers,
        max_depth=args.max_depth,
    )

    try:
        data_source = InMemoryCompanyStore.from_json_file(args.snapshot) if args.snapshot else Neo4jCompanyStore()
    except (DataAccessError, ValueError) as e:
        logger.error(f"Could not open company store: {e}")
        return 1

    try:
        graph = build_graph_data(data_source, args.company_ids, options)
    except DataAccessError as e:
        logger.error(f"Graph build failed: {e}")
        return 1
    finally:
        data_source.close()

    if args.focus or args.hide_node or args.hide_link or args.search:
        filters = FocusFilters(
            node_types={node_type: False for node_type in args.hide_node},
            link_types={link_type: False for link_type in args.hide_link},
            search=args.search,
        )
        if args.focus:
            graph = select_focus_subgraph(graph, args.focus, filters, max_depth=options.max_depth)
        else:
            graph = filter_graph(graph, filters)

    payload = json.dumps(graph.to_dict(), indent=2)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(payload)
        logger.info(f"Wrote {len(graph.nodes)} nodes and {len(graph.links)} links to {args.output}")
    else:
        print(payload)
    return 0


if __name__ == '__main__':
    sys.exit(main())
