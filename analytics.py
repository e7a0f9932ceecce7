"""
Lead Analytics

Dashboard numbers for an owner's buyer leads:
- Totals by pipeline stage
- Conversion rate (closed / total)
- Urgent (immediate timeline) leads
- Recently updated leads
"""

from typing import Dict, Iterable, List, Union

import pandas as pd

from leads.models import Buyer, BuyerStatus, Timeline

COLUMNS = [
    "id", "full_name", "phone", "city", "property_type", "status",
    "timeline", "source", "budget_min", "budget_max", "updated_at",
]


class LeadAnalytics:
    """
    Aggregates over a list of leads.

    Accepts Buyer objects or raw table rows, e.g. the output of
    ``SupabaseClient.list_buyers``.
    """

    def __init__(self, buyers: Iterable[Union[Buyer, Dict]]):
        self.df = pd.DataFrame([_record(b) for b in buyers], columns=COLUMNS)
        self.df["updated_at"] = pd.to_datetime(self.df["updated_at"], utc=True)

    def summary(self) -> Dict:
        """Headline counts for the dashboard."""
        total = len(self.df)
        converted = int((self.df["status"] == BuyerStatus.CLOSED.value).sum())

        return {
            "total_leads": total,
            "new_leads": int((self.df["status"] == BuyerStatus.NEW.value).sum()),
            "converted_leads": converted,
            "urgent_leads": int((self.df["timeline"] == Timeline.IMMEDIATE.value).sum()),
            "conversion_rate": round(converted / total * 100, 1) if total > 0 else 0.0,
        }

    def recent_leads(self, n: int = 3) -> List[Dict]:
        """Most recently updated leads, newest first."""
        recent = self.df.sort_values("updated_at", ascending=False, na_position="last").head(n)
        return recent.to_dict(orient="records")

    def breakdown(self, column: str) -> Dict[str, int]:
        """Lead count per value of ``column`` (e.g. status, city)."""
        if column not in self.df.columns:
            raise ValueError(f"Unknown column: {column}")
        counts = self.df[column].value_counts()
        return {str(key): int(value) for key, value in counts.items()}


def _record(buyer: Union[Buyer, Dict]) -> Dict:
    if isinstance(buyer, Buyer):
        return {**buyer.to_row(), "id": buyer.id, "updated_at": buyer.updated_at}
    return buyer


# Example usage
if __name__ == "__main__":
    import sys

    from database import get_client

    if len(sys.argv) != 2:
        print("Usage: python analytics.py OWNER_ID")
        sys.exit(1)

    analytics = LeadAnalytics(get_client().list_buyers(sys.argv[1]))
    for key, value in analytics.summary().items():
        print(f"{key}: {value}")
