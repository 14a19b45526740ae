#!/usr/bin/env python3
import argparse
import json
import sys

import httpx


def main() -> None:
    parser = argparse.ArgumentParser(description="Run voice analysis for a recorded agent response.")
    parser.add_argument("--audio-url", required=True, help="URL of the recording to analyse.")
    parser.add_argument("--api-base", default="http://127.0.0.1:8000", help="Backend base URL.")
    parser.add_argument("--timeout-seconds", type=float, default=180.0, help="Request timeout.")
    parser.add_argument("--top", type=int, default=5, help="How many keywords to list.")
    parser.add_argument("--json", action="store_true", help="Print the raw result payload.")
    args = parser.parse_args()

    with httpx.Client(timeout=args.timeout_seconds, trust_env=False) as client:
        response = client.post(
            f"{args.api_base}/api/voice-analysis",
            json={"audio_url": args.audio_url},
        )
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            print(f"voice analysis failed ({response.status_code}): {detail}", file=sys.stderr)
            sys.exit(1)
        result = response.json()

        keywords_response = client.post(
            f"{args.api_base}/api/voice-analysis/keywords",
            json={"transcript": result["transcript"], "top": args.top},
        )
        keywords_response.raise_for_status()
        top_keywords = keywords_response.json()["top_keywords"]

    if args.json:
        print(json.dumps(result, ensure_ascii=False, indent=2))
        return

    metrics = result["metrics"]
    print(f"overall voice score: {metrics['overallVoiceScore']}")
    print(f"speech rate: {metrics['speechRate']} wpm")
    print(f"average pause: {metrics['averagePauseDuration']} s")
    print(f"speaking time: {metrics['totalSpeakingTime']} s")
    print("tone:")
    for dimension, score in metrics["sentimentScores"].items():
        print(f"- {dimension}: {score}")
    print("insights:")
    for insight in metrics["insights"]:
        print(f"- {insight}")
    print("top keywords:")
    for match in top_keywords:
        print(f"- {match['word']} ({match['category']}) x{match['count']}")


if __name__ == "__main__":
    main()
