# debug_unfurl.py
import asyncio
import json
import sys

from roamly.agents.itinerary import generate_itinerary
from roamly.orchestrator import unfurl

DEFAULT_URLS = [
    "https://www.yelp.com/biz/lilia-brooklyn",
    "https://www.tripadvisor.com/Hotel_Review-g60763-d93589-Reviews-The_Plaza-New_York_City_New_York.html",
    "https://www.getyourguide.com/new-york-city-l59/",
]


async def main():
    urls = sys.argv[1:] or DEFAULT_URLS

    # Unfurl every link for real (network required)
    links = await asyncio.gather(*(unfurl(url, location="New York") for url in urls))
    for link in links:
        link.is_confirmed = True
        print("➡️ Unfurled:\n")
        print(json.dumps(link.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))

    itinerary = generate_itinerary(links, "2026-03-01", "2026-03-03", "New York")
    print("\n➡️ Itinerary:\n")
    print(json.dumps(itinerary.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
