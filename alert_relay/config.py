from dotenv import load_dotenv
import os

# .env 읽어오기
load_dotenv()

# Zabbix API
ZABBIX_API_URL = os.getenv("ZABBIX_API_URL", "")
ZABBIX_API_TOKEN = os.getenv("ZABBIX_API_TOKEN", "")

# Chat gateway (메시지 전송)
CHAT_GATEWAY_URL = os.getenv("CHAT_GATEWAY_URL", "")
CHAT_GATEWAY_TOKEN = os.getenv("CHAT_GATEWAY_TOKEN", "")

# 라우팅/라이프사이클 설정 파일
RELAY_CONFIG_PATH = os.getenv("RELAY_CONFIG_PATH", "./config.cfg")

# Environment
ENV = os.getenv("ENV", "development")

# Production 환경 검증
if ENV == "production":
    if not ZABBIX_API_URL:
        raise RuntimeError("ZABBIX_API_URL is not set")
    if not ZABBIX_API_TOKEN:
        raise RuntimeError("ZABBIX_API_TOKEN is not set")
    if not CHAT_GATEWAY_URL:
        raise RuntimeError("CHAT_GATEWAY_URL is not set")
