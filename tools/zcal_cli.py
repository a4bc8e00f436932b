#!/usr/bin/env python3
"""
CLI tool for talking to a running Z-Cal API.
Usage: python tools/zcal_cli.py identify meal.jpg
"""

import argparse
import base64
import json
import mimetypes
import sys
from pathlib import Path

import requests


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Query the Z-Cal API from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/zcal_cli.py health
  python tools/zcal_cli.py identify lunch.jpg
  python tools/zcal_cli.py chat "I have rice and beans"
  python tools/zcal_cli.py suggest "chicken,garlic,lemon" --json
        """
    )

    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="Base URL of the API (default: http://localhost:8000)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output raw JSON"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("health", help="Check service health")

    identify = subparsers.add_parser("identify", help="Identify the food in an image file")
    identify.add_argument("image", type=Path, help="Path to an image file")

    chat = subparsers.add_parser("chat", help="Send one message to the recipe chef")
    chat.add_argument("message", type=str, help="Message text")

    suggest = subparsers.add_parser("suggest", help="Suggest a recipe from ingredients")
    suggest.add_argument("ingredients", type=str, help="Comma-separated list of ingredients")

    return parser.parse_args(argv)


def encode_image(path: Path) -> str:
    """Read an image file into a base64 data URL."""
    media_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{media_type};base64,{data}"


def format_food(data: dict) -> str:
    """Format a food identification result for display."""
    macros = data.get("macros", {})
    output = []
    output.append(f"\n{'='*60}")
    output.append(f"  {data.get('name')}")
    output.append(f"  Calories: {data.get('calories')} | Health score: {data.get('healthScore')}/100")
    output.append(f"{'='*60}")
    output.append(
        f"\n  Protein: {macros.get('protein')} | Carbs: {macros.get('carbs')} | Fat: {macros.get('fat')}"
    )
    output.append(f"\n  {data.get('insights')}")
    return "\n".join(output)


def format_suggestion(data: dict) -> str:
    """Format a recipe suggestion for display."""
    output = [data.get("recipe", "")]
    output.append(f"\nEstimated calories: {data.get('estimatedCalories')}")
    if data.get("preparationTime"):
        output.append(f"Preparation time: {data['preparationTime']}")
    return "\n".join(output)


def send_request(args, base_url: str):
    """Issue the HTTP request for the chosen command."""
    if args.command == "health":
        return requests.get(f"{base_url}/health", timeout=10)
    elif args.command == "identify":
        if not args.image.is_file():
            print(f"Error: image not found: {args.image}", file=sys.stderr)
            sys.exit(1)
        return requests.post(
            f"{base_url}/api/identify-food",
            json={"image": encode_image(args.image)},
            timeout=120,
        )
    elif args.command == "chat":
        return requests.post(
            f"{base_url}/api/generate-recipe",
            json={"messages": [{"role": "user", "content": args.message}]},
            timeout=120,
        )
    else:
        ingredients = [i.strip() for i in args.ingredients.split(",") if i.strip()]
        if not ingredients:
            print("Error: Please provide at least one ingredient", file=sys.stderr)
            sys.exit(1)
        return requests.post(
            f"{base_url}/api/suggest-recipe",
            json={"ingredients": ingredients},
            timeout=120,
        )


def main(argv=None):
    """Main CLI entry point."""
    args = parse_args(argv)
    base_url = args.url.rstrip("/")

    try:
        response = send_request(args, base_url)
    except requests.RequestException as e:
        print(f"Error: could not reach {base_url}: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        data = response.json()
    except ValueError:
        print(f"Error ({response.status_code}): non-JSON response from server", file=sys.stderr)
        sys.exit(1)

    if not response.ok:
        error = data.get("error", data) if isinstance(data, dict) else data
        print(f"Error ({response.status_code}): {error}", file=sys.stderr)
        sys.exit(1)

    if args.json or args.command == "health":
        print(json.dumps(data, indent=2))
    elif args.command == "identify":
        print(format_food(data))
    elif args.command == "chat":
        print(data["response"])
    else:
        print(format_suggestion(data))


if __name__ == "__main__":
    main()
