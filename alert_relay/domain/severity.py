"""
Zabbix severity 정의.

- 0: Not classified
- 1: Information
- 2: Warning
- 3: Average
- 4: High
- 5: Disaster (알림 메시지에서는 Critical 로 표시)
"""

# 알림 메시지용 (High/Critical 만 라벨, 나머지는 숫자 그대로)
ALERT_SEVERITY_LABELS: dict[int, str] = {
    4: "High",
    5: "Critical",
}

# 운영자 "전체 이벤트" 조회용
ALL_SEVERITY_LABELS: dict[int, str] = {
    0: "Not classified",
    1: "Information",
    2: "Warning",
    3: "Average",
    4: "High",
    5: "Critical",
}

MAX_SEVERITY = 5


def severity_label(severity: int, full: bool = False) -> str:
    labels = ALL_SEVERITY_LABELS if full else ALERT_SEVERITY_LABELS
    return labels.get(severity, str(severity))


def severities_from(min_severity: int) -> list[int]:
    """min_severity 이상 severity 목록 (Zabbix severities 파라미터용)"""
    return list(range(max(min_severity, 0), MAX_SEVERITY + 1))
