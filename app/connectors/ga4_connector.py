"""
Google Analytics 4 connector
Traffic summary and top landing pages for one dealership's property
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.analytics.data_v1beta.types import (
    DateRange,
    Dimension,
    Metric,
    OrderBy,
    RunReportRequest,
)
from google.oauth2 import service_account

from app.connectors.base_connector import BaseConnector
from app.utils.logger import log

SUMMARY_METRICS = ["sessions", "totalUsers", "screenPageViews", "engagementRate", "conversions"]


class GA4Connector(BaseConnector):
    """Connector for Google Analytics 4"""

    def __init__(self, property_id: str, credentials_path: Optional[str]):
        super().__init__("Google Analytics 4", credentials_path)
        self.property_id = property_id
        self.client = None

    async def connect(self) -> bool:
        if self.client:
            return True
        try:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = BetaAnalyticsDataClient(credentials=credentials)
            log.info(f"Connected to Google Analytics 4 property {self.property_id}")
            return True
        except Exception as e:
            log.error(f"Failed to connect to GA4: {str(e)}")
            return False

    def _date_range(self, start_date: datetime, end_date: datetime) -> DateRange:
        return DateRange(start_date=start_date.strftime("%Y-%m-%d"), end_date=end_date.strftime("%Y-%m-%d"))

    async def fetch_data(self, start_date: datetime, end_date: datetime) -> Dict[str, Any]:
        return {
            "summary": self._fetch_summary(start_date, end_date),
            "top_pages": self._fetch_top_pages(start_date, end_date),
        }

    def _fetch_summary(self, start_date: datetime, end_date: datetime) -> Dict[str, float]:
        request = RunReportRequest(
            property=f"properties/{self.property_id}",
            date_ranges=[self._date_range(start_date, end_date)],
            metrics=[Metric(name=name) for name in SUMMARY_METRICS],
        )
        response = self.client.run_report(request)
        if not response.rows:
            return {name: 0 for name in SUMMARY_METRICS}
        values = response.rows[0].metric_values
        return {name: float(values[i].value or 0) for i, name in enumerate(SUMMARY_METRICS)}

    def _fetch_top_pages(self, start_date: datetime, end_date: datetime, limit: int = 10) -> List[Dict]:
        request = RunReportRequest(
            property=f"properties/{self.property_id}",
            date_ranges=[self._date_range(start_date, end_date)],
            dimensions=[Dimension(name="landingPagePlusQueryString")],
            metrics=[Metric(name="sessions"), Metric(name="engagementRate")],
            order_bys=[OrderBy(metric=OrderBy.MetricOrderBy(metric_name="sessions"), desc=True)],
            limit=limit,
        )
        response = self.client.run_report(request)
        return [
            {
                "page": row.dimension_values[0].value,
                "sessions": int(float(row.metric_values[0].value or 0)),
                "engagement_rate": round(float(row.metric_values[1].value or 0), 4),
            }
            for row in response.rows
        ]
