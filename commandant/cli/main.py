"""
Commandant CLI - Command-line interface for inspecting and running commanders.

Analysis (no side effects):
    commandant dry-run app.orders:PlaceOrder -o quantity=2
    commandant list -m app.orders
    commandant errors app.orders:PlaceOrder --prefix

Execution:
    commandant run app.orders:PlaceOrder --options '{"quantity": 2}'

This creates the 'commandant' command via entry point in pyproject.toml.
"""


def main():
    """Main entry point for the commandant CLI."""
    from commandant.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
