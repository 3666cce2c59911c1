#!/usr/bin/env python3
"""
Tích hợp API bên ngoài
- Open-Elevation: độ cao
- Open-Meteo: mưa hiện tại, dự báo 6h, tích lũy 72h, lưu lượng sông (GloFAS)
- OSRM: tuyến đường
- Nominatim: tìm địa điểm
- GDACS: sự kiện lũ qua vệ tinh
- NCHMF: trạm cảnh báo lũ quét/sạt lở và tin cảnh báo

Mọi hàm fetch trả về giá trị trung tính khi lỗi (None, 0, []), không ném lỗi.
"""
import time
from datetime import datetime
from typing import Dict, List, Optional

import httpx
import requests
from bs4 import BeautifulSoup
from pydantic import ValidationError

from config import HTTP_RETRIES, HTTP_TIMEOUT_SECONDS, USER_AGENT
from data.constants import WARNING_CATEGORY_KEYWORDS, WARNING_SEVERITY_KEYWORDS
from models import (
    BoundingBox,
    Coordinate,
    FloodAlert,
    RouteGeometry,
    SearchResult,
    WeatherWarning,
)

# API endpoints
OPEN_ELEVATION_API = "https://api.open-elevation.com/api/v1/lookup"
OPEN_METEO_FORECAST = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_FLOOD = "https://flood-api.open-meteo.com/v1/flood"
OSRM_ROUTE_API = "https://router.project-osrm.org/route/v1/driving"
NOMINATIM_SEARCH = "https://nominatim.openstreetmap.org/search"
GDACS_EVENTS_API = "https://www.gdacs.org/gdacsapi/api/events/geteventlist/SEARCH"
NCHMF_STATIONS_API = "https://luquetsatlo.nchmf.gov.vn/LayerMapBox/getDSCanhbaoSLLQ"
NCHMF_HOME = "https://www.nchmf.gov.vn"

MAX_WARNINGS = 5


def fetch_with_retry(
    url: str,
    params: Dict = None,
    method: str = "GET",
    data: Dict = None,
    headers: Dict = None,
    retries: int = HTTP_RETRIES,
) -> requests.Response:
    """
    Gọi HTTP có thử lại (chờ 1s, rồi 2s)

    Raises:
        requests.RequestException: sau khi hết số lần thử
    """
    for attempt in range(retries + 1):
        try:
            resp = requests.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            resp.raise_for_status()
            return resp
        except requests.RequestException as e:
            if attempt == retries:
                raise
            print(f"[HTTP] Retry {attempt + 1}/{retries} for {url}: {e}")
            time.sleep(1 * (attempt + 1))


def fetch_elevation(coords: Coordinate) -> Optional[float]:
    """Lấy độ cao (m) từ Open-Elevation, None nếu không xác định"""
    try:
        resp = fetch_with_retry(OPEN_ELEVATION_API, params={"locations": f"{coords.lat},{coords.lng}"})
        results = resp.json().get("results") or []
        if not results or results[0].get("elevation") is None:
            return None
        return float(results[0]["elevation"])
    except Exception as e:
        print(f"Elevation API Error: {e}")
        return None


def fetch_precipitation_72h(coords: Coordinate) -> float:
    """Tổng lượng mưa 72 giờ qua (chỉ số bão hòa đất)"""
    params = {
        "latitude": coords.lat,
        "longitude": coords.lng,
        "hourly": "precipitation",
        "past_days": 3,
        "forecast_days": 0,
        "timezone": "Asia/Bangkok",
    }

    try:
        resp = fetch_with_retry(OPEN_METEO_FORECAST, params=params)
        hourly = resp.json().get("hourly") or {}
        return float(sum(v or 0 for v in hourly.get("precipitation") or []))
    except Exception as e:
        print(f"72h precipitation error: {e}")
        return 0.0


def fetch_flood_data(coords: Coordinate) -> Dict[str, float]:
    """
    Lấy dữ liệu mưa và lưu lượng sông cho một điểm

    Returns:
        Dict: discharge, precip, precip_forecast_6h, precip_72h (mặc định 0)
    """
    result = {"discharge": 0.0, "precip": 0.0, "precip_forecast_6h": 0.0, "precip_72h": 0.0}

    flood_params = {
        "latitude": coords.lat,
        "longitude": coords.lng,
        "daily": "river_discharge_mean",
        "forecast_days": 1,
    }
    try:
        resp = fetch_with_retry(OPEN_METEO_FLOOD, params=flood_params)
        daily = resp.json().get("daily") or {}
        values = daily.get("river_discharge_mean") or []
        result["discharge"] = float(values[0] or 0) if values else 0.0
    except Exception as e:
        print(f"Error fetching flood data: {e}")

    weather_params = {
        "latitude": coords.lat,
        "longitude": coords.lng,
        "current": "precipitation",
        "hourly": "precipitation",
        "forecast_hours": 6,
    }
    try:
        resp = fetch_with_retry(OPEN_METEO_FORECAST, params=weather_params)
        weather = resp.json()
        result["precip"] = float((weather.get("current") or {}).get("precipitation") or 0)
        hourly = (weather.get("hourly") or {}).get("precipitation") or []
        result["precip_forecast_6h"] = float(sum(v or 0 for v in hourly[:6]))
    except Exception as e:
        print(f"Meteo API Error: {e}")

    result["precip_72h"] = fetch_precipitation_72h(coords)
    return result


def fetch_route(start: Coordinate, end: Coordinate) -> Optional[RouteGeometry]:
    """Tính tuyến đường bằng OSRM, None nếu không tìm thấy"""
    url = f"{OSRM_ROUTE_API}/{start.lng},{start.lat};{end.lng},{end.lat}"

    try:
        resp = requests.get(url, params={"overview": "full", "geometries": "geojson"}, timeout=HTTP_TIMEOUT_SECONDS)
        data = resp.json()
        if data.get("code") != "Ok" or not data.get("routes"):
            return None

        route = data["routes"][0]
        return RouteGeometry(
            polyline=[Coordinate(lat=lat, lng=lng) for lng, lat in route["geometry"]["coordinates"]],
            distance_meters=route["distance"],
            duration_seconds=route["duration"],
        )
    except Exception as e:
        print(f"Routing Error: {e}")
        return None


def search_places(query: str, limit: int = 5) -> List[SearchResult]:
    """Tìm địa điểm tại Việt Nam (Nominatim), cần ít nhất 3 ký tự"""
    if not query or len(query.strip()) < 3:
        return []

    params = {"format": "json", "q": query, "countrycodes": "vn", "limit": limit}
    try:
        resp = requests.get(NOMINATIM_SEARCH, params=params, headers={"User-Agent": USER_AGENT},
                            timeout=HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        raw = resp.json()
    except Exception as e:
        print(f"Search Error: {e}")
        return []

    results = []
    for item in raw if isinstance(raw, list) else []:
        try:
            results.append(SearchResult(
                place_id=item.get("place_id"),
                display_name=BeautifulSoup(item["display_name"], "html.parser").get_text(),
                lat=float(item["lat"]),
                lng=float(item["lon"]),
            ))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            print(f"Search result skipped: {e}")
    return results


def parse_gdacs_events(payload: Dict) -> List[FloodAlert]:
    """Chuyển GeoJSON của GDACS thành FloodAlert, chỉ giữ sự kiện đang diễn ra"""
    alerts = []
    for feature in payload.get("features") or []:
        props = feature.get("properties") or {}
        if str(props.get("iscurrent")).lower() != "true":
            continue
        try:
            countries = props.get("affectedcountries") or ""
            if isinstance(countries, str):
                countries = [c.strip() for c in countries.split(",") if c.strip()]
            else:
                countries = [c.get("countryname", "") if isinstance(c, dict) else str(c) for c in countries]
            alerts.append(FloodAlert(
                id=str(props.get("eventid")),
                alert_level=props.get("alertlevel"),
                bbox=BoundingBox.from_list(feature["bbox"]),
                from_date=props.get("fromdate"),
                to_date=props.get("todate"),
                affected_countries=countries,
                description=props.get("name") or props.get("description") or "Flood event",
                severity=float(props.get("episodealertscore") or 0),
                is_current=True,
            ))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            print(f"[GDACS] Skipped malformed event {props.get('eventid')}: {e}")
    return alerts


def fetch_gdacs_flood_alerts() -> List[FloodAlert]:
    """Sự kiện lũ đang hoạt động tại Việt Nam từ GDACS"""
    try:
        resp = requests.get(GDACS_EVENTS_API, params={"eventtypes": "FL", "country": "Vietnam"},
                            timeout=HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return parse_gdacs_events(resp.json())
    except Exception as e:
        print(f"GDACS API Error: {e}")
        return []


def fetch_nchmf_stations(query_time: datetime = None) -> List[Dict]:
    """
    Lấy danh sách trạm cảnh báo lũ quét/sạt lở từ NCHMF (bản ghi thô)

    Args:
        query_time: Thời điểm truy vấn (mặc định: giờ hiện tại, làm tròn giờ)
    """
    query_time = (query_time or datetime.now()).replace(minute=0, second=0, microsecond=0)
    form = {
        "sogiodubao": "6",  # 6-hour forecast
        "date": query_time.strftime("%Y-%m-%d %H:%M:%S"),
    }
    headers = {
        "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
        "X-Requested-With": "XMLHttpRequest",
        "User-Agent": USER_AGENT,
    }

    try:
        resp = requests.post(NCHMF_STATIONS_API, data=form, headers=headers, timeout=HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        data = resp.json()
        return data if isinstance(data, list) else []
    except Exception as e:
        print(f"Error fetching NCHMF stations: {e}")
        return []


def classify_warning_title(title: str) -> Dict[str, str]:
    """Phân loại tin cảnh báo theo từ khóa trong tiêu đề"""
    upper = title.upper()
    category = next(
        (name for name, words in WARNING_CATEGORY_KEYWORDS if any(w in upper for w in words)),
        "other",
    )
    severity = next(
        (name for name, words in WARNING_SEVERITY_KEYWORDS if any(w in upper for w in words)),
        "medium",
    )
    return {"category": category, "severity": severity}


def parse_nchmf_warnings(html: str, limit: int = MAX_WARNINGS) -> List[WeatherWarning]:
    """Đọc tin cảnh báo từ trang chủ NCHMF: <a href alt="TIN ...">TIN ...<label>(thời gian)</label></a>"""
    soup = BeautifulSoup(html, "html.parser")
    warnings = []

    for link in soup.find_all("a", href=True, alt=True):
        label = link.find("label")
        if label is None:
            continue

        title = link["alt"].strip() or link.get_text(" ", strip=True)
        timestamp = label.get_text(strip=True).strip("()").strip()
        if not title or not timestamp:
            continue

        href = link["href"]
        url = href if href.startswith("http") else f"{NCHMF_HOME}{href}"
        warnings.append(WeatherWarning(title=title, url=url, timestamp=timestamp, **classify_warning_title(title)))
        if len(warnings) >= limit:
            break

    return warnings


def fetch_vietnamese_warnings() -> List[WeatherWarning]:
    """Tin cảnh báo thời tiết mới nhất từ NCHMF (scrape trang chủ bằng httpx)"""
    try:
        with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS, follow_redirects=True) as client:
            resp = client.get(NCHMF_HOME, headers={"User-Agent": USER_AGENT})
            resp.raise_for_status()
        return parse_nchmf_warnings(resp.text)
    except Exception as e:
        print(f"NCHMF fetch error: {e}")
        return []
