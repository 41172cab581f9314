"""All magic values live here — no inline literals anywhere else."""

# Upload policy, shared by the validator and any pre-flight check.
ALLOWED_IMAGE_TYPES: tuple[str, ...] = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
)
MAX_FILE_SIZE = 10 * 1024 * 1024
# Base64 grows the payload by ~4/3; leave headroom for padding.
MAX_BASE64_RATIO = 1.37
DATA_URI_SEPARATOR = ","
PREVIEW_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

# Vision providers
PROVIDER_GEMINI = "gemini"
PROVIDER_CLAUDE = "claude"
PROVIDER_OPENAI = "openai"
PROVIDERS: tuple[str, ...] = (PROVIDER_GEMINI, PROVIDER_CLAUDE, PROVIDER_OPENAI)
GEMINI_VISION_MODEL = "gemini-2.5-flash"
CLAUDE_VISION_MODEL = "claude-opus-4-6"
OPENAI_VISION_MODEL = "gpt-4o"
VISION_MAX_TOKENS = 4096

# Substring fallbacks for opaque provider errors.
ERR_MARKER_AUTH = "API_KEY"
ERR_MARKER_QUOTA = "quota"
ERR_MARKER_SAFETY = "SAFETY"

ANALYSIS_PROMPT = """あなたは優秀な教育アシスタントです。
この画像は参考書や教科書のページです。

以下の指示に従って、内容を解説してください：

1. **概要**: このページの主なトピックを1-2文で説明してください。
2. **詳細解説**: 内容を初心者にもわかりやすく、段階的に説明してください。
3. **重要ポイント**: 覚えるべき重要な概念や用語をリストアップしてください。
4. **補足**: 理解を深めるための追加情報やヒントがあれば提供してください。

出力形式:
- マークダウン形式で見やすく整理してください
- 日本語で出力してください
- 専門用語には簡単な説明を添えてください"""

# User-facing error messages
MSG_UNSUPPORTED_FORMAT = "サポートされていない画像形式です（JPEG, PNG, WebP, GIFのみ対応）"
MSG_FILE_TOO_LARGE = "ファイルサイズが大きすぎます（最大10MB）"
MSG_EMPTY_PAYLOAD = "画像データが空です"
MSG_MISSING_FILENAME = "ファイル名が必要です"
MSG_ENCODING_FAILED = "画像の読み込みに失敗しました。"
MSG_AUTH_ERROR = "API認証に失敗しました。設定を確認してください。"
MSG_QUOTA_EXCEEDED = "API利用制限に達しました。しばらく待ってから再試行してください。"
MSG_CONTENT_REJECTED = "画像の内容を解析できませんでした。別の画像をお試しください。"
MSG_EMPTY_RESPONSE = "AI からの応答が空でした"
MSG_UNKNOWN_PROVIDER_ERROR = "画像の解析中に予期せぬエラーが発生しました。"
MSG_UNEXPECTED_ERROR = "予期せぬエラーが発生しました"
MSG_NO_IMAGE = "画像が選択されていません"

# Log messages
MSG_ANALYSIS_START = "Analyzing %s (%s, %d bytes)"
MSG_ANALYSIS_OK = "✓ Analysis complete (%.1fs)"
MSG_ANALYSIS_FAIL = "✗ Analysis failed: %s"
MSG_PROVIDER_ERROR = "Vision provider error"
MSG_STATUS_CHANGE = "Status %s → %s"
MSG_TRIGGER_IGNORED = "Analysis already in flight — trigger ignored"
MSG_SUBMIT_IGNORED = "Image submitted during analysis — ignored"
MSG_PREVIEW_RELEASE_FAILED = "Preview release failed: %s"
MSG_SPEECH_UNSUPPORTED = "Speech synthesis is not supported"
MSG_SPEECH_STALE_EVENT = "Ignoring %s for superseded utterance %d"
MSG_SPEECH_ENGINE_ERROR = "Speech engine error on utterance %d: %s"
MSG_APP_STARTING = "Starting page explainer…"

# Speech
SPEECH_LANGUAGE = "ja-JP"
SPEECH_RATE: float = 1.0
SPEECH_PITCH: float = 1.0
SPEECH_RATE_MIN: float = 0.1
SPEECH_RATE_MAX: float = 10.0
SPOKEN_PAUSE_CUE = "、"
