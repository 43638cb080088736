from fastapi import Request

from app.core.config import Settings
from app.services.chat_pipeline import ChatPipeline
from app.services.container import AppServices
from app.services.dive_analysis import DiveAnalyzer
from app.services.dive_logs import DiveLogReader
from app.services.memory_store import MemoryStore
from app.services.rag.retriever import KnowledgeRetriever


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_app_settings(request: Request) -> Settings:
    return get_services(request).settings


def get_chat_pipeline(request: Request) -> ChatPipeline:
    return get_services(request).pipeline


def get_memory_store(request: Request) -> MemoryStore:
    return get_services(request).memory


def get_dive_log_reader(request: Request) -> DiveLogReader:
    return get_services(request).dive_logs


def get_retriever(request: Request) -> KnowledgeRetriever:
    return get_services(request).retriever


def get_dive_analyzer(request: Request) -> DiveAnalyzer:
    return get_services(request).analyzer
