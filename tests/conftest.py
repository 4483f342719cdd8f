import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ARTIFACT_STORE_BACKEND", "memory")
os.environ.setdefault("ARTIFACT_DRAFTS_ENVIRONMENT", "drafts")
os.environ.setdefault("LANGFUSE_ENABLED", "false")
os.environ.setdefault("LANGFUSE_REQUIRED", "false")
os.environ.setdefault("INTERNAL_API_TOKEN", "internal_token")
os.environ.setdefault("QUALITY_GATE_SCORER", "heuristic")
os.environ.setdefault("QUALITY_GATE_THRESHOLD", "80")
os.environ.setdefault("QUALITY_GATE_MAX_ATTEMPTS", "3")
os.environ.setdefault("COMPONENT_SERVICE_BASE_URL", "https://components.example.test/api")
os.environ.setdefault("AUDIT_SERVICE_URL", "https://audit.example.test/auditv2")
os.environ.setdefault("AUDIT_PUBLIC_BASE_URL", "https://editor.example.test")
