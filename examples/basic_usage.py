"""Basic usage example for the lost phone search system."""

import asyncio

from lostphone_search import FilterSet, PhoneSearchService, SearchRequest, SearchType
from sample_data.generate_sample_data import generate_sample_reports


def describe(result) -> str:
    record = result.record
    parts = [f"{result.source.source}#{record.id}", f"{record.brand} {record.model}", record.location or "-"]
    if result.similarity_score is not None:
        parts.append(f"score {result.similarity_score:.1f} on {result.matched_field}")
    if result.distance_km is not None:
        parts.append(f"{result.distance_km:.2f} km away")
    return " | ".join(parts)


async def basic_search_demo():
    """Demonstrate basic search functionality."""
    print("📱 Lost Phone Search - Basic Usage Demo")
    print("=" * 50)

    print("\n1. Initializing search service...")
    reports = generate_sample_reports()
    async with PhoneSearchService.create(records=reports, log_level="INFO") as service:
        health = await service.health_check()
        print(f"   Store holds {health['record_counts']}")

        print("\n2. Performing searches...")
        target = reports[0]
        search_examples = [
            (SearchRequest(query="samsung galaxy"), "Fuzzy free-text search"),
            (SearchRequest(query=target.phone_number, search_type=SearchType.PHONE, threshold=90),
             "Phone number of the first lost report"),
            (SearchRequest(query="Smyth", fuzzy=False, phonetic=True), "Phonetic name search"),
            (SearchRequest(lat=14.5995, lon=120.9842, radius_km=15), "Within 15 km of Manila"),
        ]

        for request, description in search_examples:
            response = await service.search(request)
            print(f"\n   {description}: {response.pagination.total_items} results")
            for result in response.data[:3]:
                print(f"     - {describe(result)}")

        print("\n3. Advanced filtering examples...")
        response = await service.search_params(
            type="general", query="iphone", status="lost", deviceType="smartphone", timeRange="last_month"
        )
        print(f"   Lost iPhones reported this month: {response.pagination.total_items}")

        response = await service.search(SearchRequest(
            filters=FilterSet(country="Philippines", brands=["apple", "google"]), page_size=5
        ))
        print(f"   Apple or Google reports in the Philippines: {response.pagination.total_items} "
              f"over {response.pagination.total_pages} pages")
        print(f"   Active filters: {response.search_info['filter_summary']}")

        print("\n4. Statistics...")
        await service.search(SearchRequest(query="samsung galaxy"))
        stats = await service.get_stats()
        print(f"   Total searches performed: {stats['engine']['total_searches']}")
        print(f"   Cache hits: {stats['engine']['cache_hits']}")
        print(f"   Average search time: {stats['engine']['avg_search_time']:.4f}s")

    print("\n✅ Demo completed successfully!")


if __name__ == "__main__":
    asyncio.run(basic_search_demo())
