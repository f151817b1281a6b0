"""
Google Search Console connector
Search performance and top queries for one dealership's site
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build

from app.connectors.base_connector import BaseConnector
from app.utils.logger import log


class SearchConsoleConnector(BaseConnector):
    """Connector for Google Search Console API"""

    def __init__(self, site_url: str, credentials_path: Optional[str]):
        super().__init__("Google Search Console", credentials_path)
        self.site_url = site_url
        self.service = None

    async def connect(self) -> bool:
        if self.service:
            return True
        try:
            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_path,
                scopes=['https://www.googleapis.com/auth/webmasters.readonly']
            )
            self.service = build('searchconsole', 'v1', credentials=credentials, cache_discovery=False)
            log.info(f"Connected to Google Search Console: {self.site_url}")
            return True
        except Exception as e:
            log.error(f"Failed to connect to Search Console: {str(e)}")
            return False

    def _query(self, start_date: datetime, end_date: datetime, dimensions: List[str], row_limit: int) -> List[Dict]:
        body = {
            'startDate': start_date.strftime('%Y-%m-%d'),
            'endDate': end_date.strftime('%Y-%m-%d'),
            'dimensions': dimensions,
            'rowLimit': row_limit,
        }
        response = self.service.searchanalytics().query(siteUrl=self.site_url, body=body).execute()
        return response.get('rows', [])

    async def fetch_data(self, start_date: datetime, end_date: datetime) -> Dict[str, Any]:
        totals = self._query(start_date, end_date, [], 1)
        summary = totals[0] if totals else {}
        queries = self._query(start_date, end_date, ['query'], 10)
        return {
            "summary": {
                "clicks": int(summary.get('clicks', 0)),
                "impressions": int(summary.get('impressions', 0)),
                "ctr": round(float(summary.get('ctr', 0)), 6),  # Decimal 0-1
                "position": round(float(summary.get('position', 0)), 1),
            },
            "top_queries": [
                {
                    "query": row['keys'][0],
                    "clicks": int(row.get('clicks', 0)),
                    "impressions": int(row.get('impressions', 0)),
                    "position": round(float(row.get('position', 0)), 1),
                }
                for row in queries
            ],
        }
