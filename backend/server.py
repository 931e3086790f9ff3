from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field, ValidationError

from menu_scan.config import Settings
from menu_scan.llm_client import OpenAIChatClient
from menu_scan.menu_extraction import MenuExtractionError, MenuExtractor
from menu_scan.models import CamelModel, Context, Dish, Macros, Subscores, UserProfile, merge_profiles
from menu_scan.recommenders import MODES, Recommendation, RecommendationSet, get_recommender
from menu_scan.vision_client import OCRError, VisionClient

config = Settings.from_env()

logger = logging.getLogger("menu_scan_server")
logging.basicConfig(level=config.log_level)

NO_SAFE_DISHES_MESSAGE = "No dishes matched your dietary needs."
ESTIMATED_MACROS_NOTE = "Some macros were estimated from the dish description and are approximate."
DISCLAIMER = "Scores reflect how well a dish matches your preferences, not medical or nutritional advice."
MENU_TEXT_PREVIEW_CHARS = 2000


class RecommendRequest(CamelModel):
    dishes: List[Dict[str, Any]] = Field(default_factory=list)
    profile: UserProfile = Field(default_factory=UserProfile)
    extended_profile: Optional[UserProfile] = None
    context: Context = Field(default_factory=Context)
    mode: str = "contextual"


class AnalyzeMenuRequest(CamelModel):
    menu_text: str = Field(max_length=50000)
    profile: UserProfile = Field(default_factory=UserProfile)
    extended_profile: Optional[UserProfile] = None
    context: Context = Field(default_factory=Context)
    mode: str = "contextual"


class DishSummary(CamelModel):
    id: str
    title: str
    description: str = ""
    price: Optional[float] = None
    currency: Optional[str] = None
    section: Optional[str] = None


class RecommendationItem(CamelModel):
    dish: DishSummary
    personalized_match_score: float
    label: Optional[str] = None
    macros: Optional[Macros] = None
    macros_estimated: bool = False
    reasons: List[str] = Field(default_factory=list)
    subscores: Optional[Subscores] = None


class RejectedItem(CamelModel):
    title: str
    reason: str
    constraint: str


class Diagnostics(CamelModel):
    mode: str
    relaxed_mode: bool
    safe_count: int
    filtered_out_count: int
    targets_used: Optional[Dict[str, List[float]]] = None


class RecommendResponse(CamelModel):
    success: bool = True
    analyzed_count: int
    top3: List[RecommendationItem] = Field(default_factory=list)
    rejected: List[RejectedItem] = Field(default_factory=list)
    diagnostics: Diagnostics
    message: Optional[str] = None
    notes: List[str] = Field(default_factory=list)


class AnalyzeResponse(RecommendResponse):
    extracted_count: int = 0
    extracted_dishes: List[DishSummary] = Field(default_factory=list)
    menu_text: Optional[str] = None


class HealthResponse(CamelModel):
    status: str = "ok"
    ocr_configured: bool
    llm_configured: bool
    modes: List[str]


def _dish_summary(dish: Dish) -> DishSummary:
    return DishSummary(
        id=dish.name,
        title=dish.name,
        description=dish.description,
        price=dish.price,
        currency=dish.currency,
        section=dish.section,
    )


def _recommendation_item(item: Recommendation) -> RecommendationItem:
    return RecommendationItem(
        dish=_dish_summary(item.dish),
        personalized_match_score=item.score,
        label=item.label,
        macros=item.dish.macros,
        macros_estimated=item.macros_estimated,
        reasons=item.reasons,
        subscores=item.subscores,
    )


def _response_fields(result: RecommendationSet, analyzed_count: int) -> dict[str, Any]:
    notes = [DISCLAIMER]
    if result.macros_estimated:
        notes.append(ESTIMATED_MACROS_NOTE)
    targets = result.debug.get("targetsUsed")
    return {
        "analyzed_count": analyzed_count,
        "top3": [_recommendation_item(item) for item in result.top3],
        "rejected": [
            RejectedItem(title=item.dish.name, reason=item.rejection_reason, constraint=item.constraint.value)
            for item in result.rejected
        ],
        "diagnostics": Diagnostics(
            mode=result.mode,
            relaxed_mode=result.fallback,
            safe_count=len(result.all),
            filtered_out_count=len(result.rejected),
            targets_used=targets,
        ),
        "message": NO_SAFE_DISHES_MESSAGE if result.no_safe_dishes else None,
        "notes": notes,
    }


class MenuScanService:
    def __init__(
        self,
        config: Settings,
        *,
        vision_client: Optional[VisionClient] = None,
        llm_client: Optional[OpenAIChatClient] = None,
    ):
        self.config = config
        self.vision_client = vision_client
        if self.vision_client is None and config.ocr_configured:
            self.vision_client = VisionClient(config.vision_api_key)
        if llm_client is None and config.llm_configured:
            llm_client = OpenAIChatClient(
                config.openai_api_key,
                model=config.openai_model,
                base_url=config.openai_base_url,
                timeout=config.llm_timeout_seconds,
                max_retries=config.llm_max_retries,
            )
        self.extractor = MenuExtractor(llm_client, use_llm=config.enable_llm_extraction)

    @property
    def llm_configured(self) -> bool:
        return self.extractor.use_llm

    def recommend(
        self,
        dishes: Sequence[Any],
        profile: UserProfile,
        context: Context,
        mode: str,
    ) -> RecommendationSet:
        recommender = get_recommender(
            mode,
            floor=self.config.score_floor,
            ceil=self.config.score_ceil,
            threshold=self.config.fallback_threshold,
        )
        result = recommender.rank(dishes, profile, context)
        logger.info(
            "Recommended %s of %s dishes (mode=%s, relaxed=%s, rejected=%s)",
            len(result.top3),
            len(dishes),
            result.mode,
            result.fallback,
            len(result.rejected),
        )
        return result

    async def extract_dishes(self, menu_text: str) -> List[Dish]:
        return await asyncio.to_thread(self.extractor.extract, menu_text)

    async def extract_text(self, image_bytes: bytes) -> str:
        if self.vision_client is None:
            raise RuntimeError("OCR is not configured (set GOOGLE_VISION_API_KEY).")
        return await asyncio.to_thread(self.vision_client.extract_text, image_bytes)


service = MenuScanService(config)
app = FastAPI(title="Menu Scan API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(config.frontend_origins),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


def _recommend_or_400(dishes: Sequence[Any], profile: UserProfile, context: Context, mode: str) -> RecommendationSet:
    try:
        return service.recommend(dishes, profile, context, mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


async def _analyze_text(
    menu_text: str,
    profile: UserProfile,
    context: Context,
    mode: str,
) -> AnalyzeResponse:
    try:
        dishes = await service.extract_dishes(menu_text)
    except MenuExtractionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not dishes:
        raise HTTPException(status_code=422, detail="No dishes found in the menu text.")

    result = _recommend_or_400(dishes, profile, context, mode)
    return AnalyzeResponse(
        **_response_fields(result, analyzed_count=len(dishes)),
        extracted_count=len(dishes),
        extracted_dishes=[_dish_summary(dish) for dish in dishes],
        menu_text=menu_text[:MENU_TEXT_PREVIEW_CHARS],
    )


def _parse_form_model(raw: Optional[str], model: type[CamelModel], field_name: str) -> Any:
    if not raw:
        return model()
    try:
        return model.model_validate(json.loads(raw))
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"'{field_name}' must be valid JSON.") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=json.loads(exc.json())) from exc


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        ocr_configured=service.vision_client is not None,
        llm_configured=service.llm_configured,
        modes=list(MODES),
    )


@app.post("/recommend", response_model=RecommendResponse)
async def recommend(request: RecommendRequest) -> RecommendResponse:
    if not request.dishes:
        raise HTTPException(status_code=400, detail="dishes[] is required.")
    profile = merge_profiles(request.profile, request.extended_profile)
    result = _recommend_or_400(request.dishes, profile, request.context, request.mode)
    return RecommendResponse(**_response_fields(result, analyzed_count=len(request.dishes)))


@app.post("/analyze-menu", response_model=AnalyzeResponse)
async def analyze_menu(request: AnalyzeMenuRequest) -> AnalyzeResponse:
    menu_text = request.menu_text.strip()
    if not menu_text:
        raise HTTPException(status_code=400, detail="menuText is required.")
    profile = merge_profiles(request.profile, request.extended_profile)
    return await _analyze_text(menu_text, profile, request.context, request.mode)


@app.post("/analyze-image", response_model=AnalyzeResponse)
async def analyze_image(
    image: UploadFile = File(...),
    profile: Optional[str] = Form(None),
    extended_profile: Optional[str] = Form(None, alias="extendedProfile"),
    context: Optional[str] = Form(None),
    mode: str = Form("contextual"),
) -> AnalyzeResponse:
    if service.vision_client is None:
        raise HTTPException(status_code=503, detail="OCR is not configured (set GOOGLE_VISION_API_KEY).")
    if not (image.content_type or "").startswith("image/"):
        raise HTTPException(status_code=415, detail="Only image uploads are allowed.")

    image_bytes = await image.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    if len(image_bytes) > config.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Image exceeds {config.max_upload_mb:g} MB.")

    base_profile = _parse_form_model(profile, UserProfile, "profile")
    extended = _parse_form_model(extended_profile, UserProfile, "extendedProfile") if extended_profile else None
    meal_context = _parse_form_model(context, Context, "context")

    try:
        menu_text = await service.extract_text(image_bytes)
    except OCRError as exc:
        logger.warning("OCR failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return await _analyze_text(menu_text, merge_profiles(base_profile, extended), meal_context, mode)


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
