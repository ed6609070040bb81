"""HTTP server package: FastAPI routes for the mobile client.

WHY: The mobile app talks to Gemini only through this relay, which keeps
the API key server-side and returns UI-ready payloads.

HOW: app.py defines the FastAPI application and routes, models.py the
pydantic request/response schemas, uploads.py multipart validation.

RULES:
- Routes never call httpx directly; all upstream calls go through GeminiClient
- Response shapes match the mobile client: {reply}, {text}, {audioBase64, mimeType}
"""
