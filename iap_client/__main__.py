"""Entry point for running the stub payment API as a module."""

import argparse
import os
import sys

import uvicorn


def main() -> None:
    """Main entry point for the stub payment API."""
    parser = argparse.ArgumentParser(
        description="Stub Payment API - local backend for in-app purchases in fake-products mode"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "127.0.0.1"),
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8080")),
        help="Port to bind to (default: 8080)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default=os.getenv("LOG_FORMAT", "json"),
        help="Log output format (default: json)",
    )
    parser.add_argument(
        "--catalog",
        default=os.getenv("STUB_CATALOG_PATH", "config/stub_products.yaml"),
        help="Path to stub_products.yaml (default: config/stub_products.yaml)",
    )

    args = parser.parse_args()

    os.environ["LOG_LEVEL"] = args.log_level
    os.environ["LOG_FORMAT"] = args.log_format
    os.environ["STUB_CATALOG_PATH"] = args.catalog

    if args.log_format == "console":
        print("=" * 60)
        print("Stub Payment API v0.1.0")
        print("=" * 60)
        print(f"Host: {args.host}")
        print(f"Port: {args.port}")
        print(f"Log Level: {args.log_level}")
        print(f"Catalog: {args.catalog}")
        print("=" * 60)

    try:
        uvicorn.run(
            "iap_client.stub_api.main:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
            access_log=False,  # RequestLoggingMiddleware logs requests
        )
    except KeyboardInterrupt:
        print("\nShutting down gracefully...")
        sys.exit(0)
    except Exception as e:
        print(f"Failed to start stub API: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
