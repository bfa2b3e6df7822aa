"""
AI meal plan generation on top of the Groq chat completion adapter.

Flow: plan quota check, prompt hardening, generation (chunked for long plans,
retried for short ones), lenient JSON parsing, response validation, and
finally a row in the ``ai_generations`` usage ledger.
"""

from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import re
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adapters import groq_adapter
from app.config import settings
from app.exceptions import (
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    NutriFlowError,
    RequestTimeoutError,
    ServiceValidationError,
)
from domain.models import AIGeneration, Dietitian
from domain.schemas import GenerateMealPlanRequest
from repositories import AIGenerationRepository, ClientRepository
from services.subscription_service import SubscriptionService

logger = logging.getLogger("nutriflow.services.generation")
security_logger = logging.getLogger("security")

CHUNK_THRESHOLD_DAYS = 5
DAYS_PER_CHUNK = 2
MAX_PROMPT_CHARS = 1000
FILTERED = "[CONTENU_FILTRE]"
INVALID_RESPONSE = "Réponse générée invalide. Veuillez réessayer avec une description différente."

# Rejected outright
_MALICIOUS_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"<\s*script",
        r"javascript\s*:",
        r"\bdrop\s+table\b",
        r"\bunion\s+select\b",
        r"\bdelete\s+from\b",
        r"\binsert\s+into\b",
        r"\bexecute\s+javascript\b",
        r"\brun\s+sql\b",
        r"\bapi[\s_-]?key\b",
        r"\breveal\s+the\s+password\b",
    )
]

# Stripped from the prompt and reported
_INJECTION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions",
        r"forget\s+everything",
        r"override\s+(the\s+)?instructions",
        r"system\s+prompt",
        r"you\s+are\s+now",
        r"new\s+instructions\s*:",
        r"act\s+as\s+(an?\s+)?",
    )
]

_SUSPICIOUS_RESPONSE = (
    "system prompt",
    "<script",
    "javascript:",
    "http://",
    "https://",
    "api key",
    "password",
)


# ============================================================================
# Prompt hardening
# ============================================================================


def contains_malicious_content(text: str) -> bool:
    return any(p.search(text or "") for p in _MALICIOUS_PATTERNS)


def sanitize_prompt(text: str) -> str:
    """Replace injection phrases, collapse whitespace and cap the length."""
    cleaned = (text or "").replace("\\n", " ")
    for pattern in _INJECTION_PATTERNS:
        cleaned = pattern.sub(FILTERED, cleaned)
    cleaned = " ".join(cleaned.split())
    return cleaned[:MAX_PROMPT_CHARS]


# ============================================================================
# Parsing and validation
# ============================================================================


def parse_plan_json(text: str) -> Dict[str, Any]:
    """
    Lenient JSON extraction from a model reply.

    Removes code fences, keeps the outermost ``{...}``, drops trailing commas
    and comments.

    Raises:
        ValueError: no JSON object could be recovered
    """
    cleaned = re.sub(r"```(?:json)?\s*", "", (text or "").strip())
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ValueError("No JSON object in model reply")
    cleaned = cleaned[start : end + 1]
    cleaned = re.sub(r",\s*}", "}", cleaned)
    cleaned = re.sub(r",\s*]", "]", cleaned)
    cleaned = re.sub(r"/\*[^*]*\*/", "", cleaned)
    cleaned = re.sub(r"//.*$", "", cleaned, flags=re.MULTILINE)
    parsed = json.loads(cleaned)
    if not isinstance(parsed, dict):
        raise ValueError("Model reply is not a JSON object")
    return parsed


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_generated_plan(plan: Any) -> Tuple[bool, str]:
    """Structural and content checks on a parsed plan."""
    if not isinstance(plan, dict):
        return False, "plan is not an object"
    days = plan.get("days")
    if not isinstance(days, list) or not days:
        return False, "plan has no days"
    for day in days:
        if not isinstance(day, dict) or not isinstance(day.get("meals"), dict):
            return False, "day without meals"
        if "totalCalories" in day and not _is_number(day["totalCalories"]):
            return False, "non-numeric day calories"
        for meal in day["meals"].values():
            items = meal if isinstance(meal, list) else [meal]
            for item in items:
                if not isinstance(item, dict):
                    return False, "malformed meal"
                if "calories" in item and not _is_number(item["calories"]):
                    return False, "non-numeric meal calories"

    serialized = json.dumps(plan, ensure_ascii=False).lower()
    for needle in _SUSPICIOUS_RESPONSE:
        if needle in serialized:
            return False, f"suspicious content: {needle}"
    return True, ""


# ============================================================================
# Prompts
# ============================================================================


def _split(calories: int) -> Dict[str, int]:
    return {
        "breakfast": round(calories * 0.25),
        "lunch": round(calories * 0.35),
        "dinner": round(calories * 0.30),
        "snack": round(calories * 0.10),
    }


def build_single_prompt(
    sanitized: str, duration: int, calories: int, restrictions: List[str]
) -> str:
    split = _split(calories)
    restriction_line = f"Restrictions: {', '.join(restrictions)}\n" if restrictions else ""
    return (
        f"Génère un plan alimentaire en JSON pour {duration} jours.\n\n"
        f"{sanitized} - {calories} calories/jour\n"
        f"{restriction_line}\n"
        "Format JSON EXACT (remplace les ... par des valeurs réelles):\n"
        "{\n"
        f'  "name": "Plan {duration} jours",\n'
        f'  "description": "Plan environ {calories} calories",\n'
        f'  "totalDays": {duration},\n'
        f'  "averageCaloriesPerDay": {calories},\n'
        '  "nutritionSummary": {"protein": "25%", "carbohydrates": "45%", "fat": "30%"},\n'
        '  "days": [{"day": 1, "meals": {'
        f'"breakfast": {{"name": "...", "calories": {split["breakfast"]}, "protein": 17, "carbs": 62, "fat": 15, "ingredients": ["..."], "instructions": ["..."]}}, '
        f'"lunch": {{"name": "...", "calories": {split["lunch"]}, "protein": 32, "carbs": 79, "fat": 21, "ingredients": ["..."], "instructions": ["..."]}}, '
        f'"dinner": {{"name": "...", "calories": {split["dinner"]}, "protein": 34, "carbs": 61, "fat": 18, "ingredients": ["..."], "instructions": ["..."]}}, '
        f'"snacks": [{{"name": "...", "calories": {split["snack"]}}}]'
        f'}}, "totalCalories": {calories}}}]\n'
        "}\n\n"
        f"Répète pour {duration} jours avec variations:"
    )


def build_chunk_prompt(start_day: int, end_day: int, calories: int, simple: bool = False) -> str:
    split = _split(calories)
    if simple:
        names = {"breakfast": "Petit-déjeuner", "lunch": "Déjeuner", "dinner": "Dîner"}
    else:
        names = {"breakfast": "...", "lunch": "...", "dinner": "..."}
    days = ",".join(
        '{"day":%d,"meals":{%s},"totalCalories":%d}'
        % (
            day,
            ",".join(
                '"%s":{"name":"%s","calories":%d}' % (meal, names[meal], split[meal])
                for meal in ("breakfast", "lunch", "dinner")
            ),
            calories,
        )
        for day in range(start_day, end_day + 1)
    )
    template = '{"days":[%s]}' % days
    if simple:
        return template
    return (
        f"Génère {end_day - start_day + 1} jours de repas (jours {start_day}-{end_day}), "
        f"{calories}cal/jour.\n\nJSON minimal:\n{template}\n\n"
        "Remplace les ... par des noms de plats français créatifs."
    )


# ============================================================================
# Service
# ============================================================================


class MealPlanGenerationService:
    @staticmethod
    def check_quota(db: Session, dietitian: Dietitian) -> None:
        """
        Raises:
            ForbiddenError: plan without AI access, or monthly quota used up
            NutriFlowError: the dietitian's plan is missing from the catalog
        """
        plan = SubscriptionService.get_plan(db, dietitian)
        if plan is None:
            logger.error(f"Subscription plan '{dietitian.subscription_plan}' not found")
            raise NutriFlowError("Plan d'abonnement non trouvé")

        quota = plan.ai_generations_per_month
        if quota == 0:
            raise ForbiddenError(
                "La génération IA n'est pas disponible avec votre plan actuel",
                details={"requiresUpgrade": True, "currentPlan": plan.display_name},
                code="PLAN_LIMIT_REACHED",
            )
        if quota < 0:
            return
        used = SubscriptionService.count_usage(db, dietitian, "ai_generations")
        if used >= quota:
            raise ForbiddenError(
                f"Limite mensuelle atteinte ({quota} générations)",
                details={"requiresUpgrade": True, "currentUsage": used, "monthlyLimit": quota},
                code="PLAN_LIMIT_REACHED",
            )

    @staticmethod
    def _generate_chunked(duration: int, calories: int) -> Dict[str, Any]:
        all_days: List[Dict[str, Any]] = []
        for start_day in range(1, duration + 1, DAYS_PER_CHUNK):
            end_day = min(start_day + DAYS_PER_CHUNK - 1, duration)
            try:
                text = groq_adapter.complete(
                    [{"role": "user", "content": build_chunk_prompt(start_day, end_day, calories)}],
                    temperature=0.7,
                    max_tokens=2000,
                )
            except RequestTimeoutError:
                logger.warning(f"Days {start_day}-{end_day} timed out; retrying with a short prompt")
                text = groq_adapter.complete(
                    [
                        {
                            "role": "system",
                            "content": "Modifie ce JSON en changeant UNIQUEMENT les noms des repas "
                            "par des noms créatifs français. Ne change RIEN d'autre.",
                        },
                        {
                            "role": "user",
                            "content": build_chunk_prompt(start_day, end_day, calories, simple=True),
                        },
                    ],
                    temperature=0.3,
                    max_tokens=800,
                )
            try:
                chunk = parse_plan_json(text)
            except ValueError as exc:
                logger.error(f"Days {start_day}-{end_day}: unparseable reply ({exc})")
                raise NutriFlowError(INVALID_RESPONSE)
            if not isinstance(chunk.get("days"), list):
                raise NutriFlowError(INVALID_RESPONSE)
            all_days.extend(chunk["days"])

        return {
            "name": f"Plan {duration} jours",
            "description": f"Plan équilibré environ {calories} calories",
            "totalDays": duration,
            "averageCaloriesPerDay": calories,
            "nutritionSummary": {"protein": "25%", "carbohydrates": "45%", "fat": "30%"},
            "days": all_days,
        }

    @staticmethod
    def _generate_single(prompt: str, duration: int) -> Dict[str, Any]:
        attempts = max(1, settings.ai_max_attempts)
        for attempt in range(1, attempts + 1):
            text = groq_adapter.complete(
                [{"role": "user", "content": prompt}], temperature=0.7, max_tokens=2000
            )
            try:
                plan = parse_plan_json(text)
            except ValueError as exc:
                logger.warning(f"Attempt {attempt}/{attempts}: unparseable reply ({exc})")
                continue
            days = plan.get("days")
            if plan.get("name") and isinstance(days, list) and len(days) == duration:
                return plan
            logger.warning(f"Attempt {attempt}/{attempts}: invalid plan structure")
        raise NutriFlowError(INVALID_RESPONSE)

    @staticmethod
    def _record(
        db: Session,
        dietitian: Dietitian,
        request: GenerateMealPlanRequest,
        prompt: str,
        successful: bool,
    ) -> None:
        try:
            AIGenerationRepository(db).create(
                AIGeneration(
                    dietitian_id=dietitian.id,
                    client_id=request.client_id,
                    generation_type="meal_plan",
                    prompt_used=prompt[:MAX_PROMPT_CHARS],
                    target_calories=request.target_calories,
                    duration_days=request.duration,
                    restrictions=request.restrictions,
                    client_dietary_tags=request.client_dietary_tags,
                    generation_successful=successful,
                )
            )
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to record AI generation usage")

    @staticmethod
    def generate(
        db: Session, dietitian: Dietitian, request: GenerateMealPlanRequest
    ) -> Dict[str, Any]:
        """
        Generate a meal plan for the dietitian.

        Returns:
            ``{"success": True, "data": plan}``

        Raises:
            ExternalServiceError: AI not configured or upstream unavailable (503)
            ForbiddenError: plan quota (403)
            ServiceValidationError: malicious prompt (400)
            RequestTimeoutError: upstream timeout (408)
            NutriFlowError: unusable model output (500)
        """
        if not groq_adapter.is_configured():
            raise ExternalServiceError("Service de génération IA indisponible")

        MealPlanGenerationService.check_quota(db, dietitian)

        if request.client_id and not ClientRepository(db).get_for_dietitian(
            dietitian.id, request.client_id
        ):
            raise NotFoundError(f"Client not found: {request.client_id}")

        if contains_malicious_content(request.prompt):
            security_logger.warning(
                {
                    "event": "malicious_ai_prompt",
                    "dietitian_id": str(dietitian.id),
                    "prompt": request.prompt[:200],
                }
            )
            raise ServiceValidationError("Contenu invalide détecté dans la description")

        sanitized = sanitize_prompt(request.prompt)
        if FILTERED in sanitized:
            security_logger.warning(
                {
                    "event": "ai_prompt_sanitized",
                    "dietitian_id": str(dietitian.id),
                    "prompt": request.prompt[:200],
                }
            )

        restrictions = list(request.restrictions) + list(request.client_dietary_tags)
        try:
            if request.duration >= CHUNK_THRESHOLD_DAYS:
                plan = MealPlanGenerationService._generate_chunked(
                    request.duration, request.target_calories
                )
            else:
                plan = MealPlanGenerationService._generate_single(
                    build_single_prompt(
                        sanitized, request.duration, request.target_calories, restrictions
                    ),
                    request.duration,
                )
        except NutriFlowError:
            MealPlanGenerationService._record(db, dietitian, request, sanitized, successful=False)
            raise

        valid, reason = validate_generated_plan(plan)
        if not valid:
            security_logger.warning(
                {
                    "event": "suspicious_ai_response",
                    "dietitian_id": str(dietitian.id),
                    "reason": reason,
                }
            )
            MealPlanGenerationService._record(db, dietitian, request, sanitized, successful=False)
            raise NutriFlowError(INVALID_RESPONSE)

        MealPlanGenerationService._record(db, dietitian, request, sanitized, successful=True)
        logger.info(
            f"Generated {request.duration}-day plan for dietitian {dietitian.id}"
        )
        return {"success": True, "data": plan}
