#!/usr/bin/env python3
"""
Recommendation Session Runner

This script drives a RecommendationSession against Gemini from the terminal,
without starting the API server or the web client. It is the quickest way to
see how prompt changes affect real replies.

Usage:
    python scripts/run_recommendations.py activities --location "Washington DC" --activities hiking --distance 50
    python scripts/run_recommendations.py destinations --location "Atlanta, GA" --transport car --time 5 --activities "beaches" --count 3
    python scripts/run_recommendations.py activities --location "Denver" --activities "breweries" --stream

Requires GOOGLE_API_KEY in the environment or in .env.
"""

import argparse
import asyncio
import logging
import os
import sys

from pydantic import ValidationError

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vacaition.config import settings
from vacaition.schemas.recommendations import (
    Recommendation,
    RecommendationRequest,
    SessionState,
    TravelBudget,
    VacationSuggestion,
)
from vacaition.services.completion_client import GeminiCompletionClient
from vacaition.services.recommendation_session import RecommendationSession


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def print_state(state: SessionState) -> None:
    """Pretty print the session state."""
    print("\n" + "=" * 60)
    print(f"STATUS: {state.status}")
    print("=" * 60)

    if state.error:
        print(f"\n❌ {state.error}")
    if state.message:
        print(f"\nℹ️  {state.message}")

    for i, result in enumerate(state.results, 1):
        if isinstance(result, VacationSuggestion):
            print(f"\n--- Destination #{i}: {result.destination} ---")
            print(f"  {result.description}")
            for activity in result.activities:
                print(f"  • {activity.name} ({activity.location})")
                print(f"      {activity.description}")
        elif isinstance(result, Recommendation):
            print(f"\n--- #{i}: {result.name} ---")
            print(f"  {result.description}")
            if result.location:
                print(f"  Location: {result.location}")
            if result.website:
                print(f"  Website:  {result.website}")

    if state.suppressed_duplicates:
        print(f"\nSuppressed repeats: {', '.join(state.suppressed_duplicates)}")
    if state.excluded_destinations:
        print(f"Exclusion list:     {', '.join(state.excluded_destinations)}")
    print()


def build_request(args: argparse.Namespace) -> RecommendationRequest:
    """Validate CLI input the same way the web form does."""
    budget = None
    if args.mode == "activities" and args.distance is not None:
        budget = TravelBudget(amount=args.distance, unit=args.distance_unit)
    elif args.mode == "destinations" and args.time is not None:
        budget = TravelBudget(amount=args.time, unit=args.time_unit)

    return RecommendationRequest(
        location=args.location,
        transport=args.transport,
        travel_budget=budget,
        activities=args.activities,
        excluded_destinations=args.exclude or [],
    )


async def run(args: argparse.Namespace) -> SessionState:
    """Run one retrieval and print the final state."""
    request = build_request(args)
    session = RecommendationSession(GeminiCompletionClient())

    if args.stream:
        def show_progress(state: SessionState) -> None:
            if state.status == "loading" and state.partial is not None:
                count = len(state.partial) if isinstance(state.partial, list) else 1
                print(f"  ... {count} item(s) received so far")

        session.subscribe(show_progress)

    print(f"\nCalling {settings.GEMINI_MODEL} ({args.mode}, stream={args.stream})...")
    if args.mode == "activities":
        state = await session.start_single_retrieval(request, streaming=args.stream)
    else:
        state = await session.start_batch_retrieval(request, count=args.count, streaming=args.stream)

    print_state(state)
    return state


def main():
    parser = argparse.ArgumentParser(
        description="Run the VacAItion recommendation session from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Things to do nearby
  python scripts/run_recommendations.py activities \\
    --location "Washington DC" --activities "camping" --distance 100

  # Three destinations, one sequential round each
  python scripts/run_recommendations.py destinations \\
    --location "Chicago" --transport train --time 6 --activities "museums" --count 3
        """
    )

    parser.add_argument(
        "mode",
        choices=["activities", "destinations"],
        help="Recommendation flow to run"
    )
    parser.add_argument(
        "--location", "-l",
        type=str,
        required=True,
        help="Where you are (e.g., 'Washington DC')"
    )
    parser.add_argument(
        "--activities", "-a",
        type=str,
        required=True,
        help="What you want to do (e.g., 'hiking, local food')"
    )
    parser.add_argument(
        "--transport", "-t",
        choices=["air", "car", "bike", "train", "walk"],
        help="Transport for destinations mode"
    )
    parser.add_argument(
        "--distance",
        type=float,
        help="Travel distance for activities mode"
    )
    parser.add_argument(
        "--distance-unit",
        choices=["miles", "kilometers"],
        default="miles",
        help="Unit for --distance (default: miles)"
    )
    parser.add_argument(
        "--time",
        type=float,
        help="Travel time for destinations mode"
    )
    parser.add_argument(
        "--time-unit",
        choices=["minutes", "hours"],
        default="hours",
        help="Unit for --time (default: hours)"
    )
    parser.add_argument(
        "--count", "-c",
        type=int,
        default=settings.DEFAULT_BATCH_SIZE,
        help=f"Destinations to fetch (default: {settings.DEFAULT_BATCH_SIZE})"
    )
    parser.add_argument(
        "--exclude", "-x",
        action="append",
        help="Destination to exclude (repeatable)"
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Stream replies and show progress"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if not settings.GOOGLE_API_KEY:
        print("\n⚠️  ERROR: GOOGLE_API_KEY environment variable not set!")
        print("   Please set it in your .env file or export it:")
        print("   export GOOGLE_API_KEY=your-gemini-api-key")
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except ValidationError as e:
        print("\n❌ Invalid input:")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            print(f"   {field}: {error['msg']}")
        sys.exit(2)


if __name__ == "__main__":
    main()
