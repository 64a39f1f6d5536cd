from dotenv import load_dotenv
import os

load_dotenv()

# 텍스트 생성 모델 (OpenAI 호환 chat/completions)
LLM_API_KEY: str = os.getenv("LLM_API_KEY", "")
LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "8000"))

# 재시도 설정
MODEL_TIMEOUT_SEC: float = float(os.getenv("MODEL_TIMEOUT_SEC", "180"))
MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))
RETRY_DELAY_SEC: float = float(os.getenv("RETRY_DELAY_SEC", "2"))
MIN_RESPONSE_CHARS: int = 100

# 커리큘럼 캐시
CURRICULUM_CACHE_TTL_SEC: float = float(os.getenv("CURRICULUM_CACHE_TTL_SEC", "300"))

# 학기 기본값
DEFAULT_WEEKS: int = 10
DEFAULT_LESSONS_PER_WEEK: int = 5
DEFAULT_TERM: str = "Term 1"

# 개념 추출 / 다이어그램
MIN_CONCEPT_LENGTH: int = 10
MAX_DIAGRAMS: int = 5

# PDF 렌더링
PDF_TIMEOUT_MS: int = int(os.getenv("PDF_TIMEOUT_MS", "60000"))

# 문서 저장소 (CLI용 JSON 디렉토리)
DOCUMENT_STORE_DIR: str = os.getenv("CBC_DOCGEN_STORE_DIR", "documents")

# 다이어그램 이미지 서버 (/api/diagrams/... 참조를 base64로 임베드, 비어 있으면 건너뜀)
DIAGRAM_BASE_URL: str = os.getenv("DIAGRAM_BASE_URL", "")
