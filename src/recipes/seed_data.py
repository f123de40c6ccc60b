# src/recipes/seed_data.py — v1
"""Built-in recipes for the StoryLab stages.

Each seed is a camelCase recipe document with a fixed id, so seeding is
idempotent: an existing recipe with the same id is left untouched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from recipeflow.recipes.manager import RecipeManager

logger = logging.getLogger(__name__)

_TEXT_MODEL = {"provider": "gemini", "modelName": "gemini-2.5-flash", "temperature": 0.7, "maxTokens": 2000}
_IMAGE_MODEL = {"provider": "gemini", "modelName": "gemini-2.5-flash-image", "temperature": 0.8}

_EXECUTION_CONFIG = {
    "timeout": 120000,
    "retryPolicy": {"maxRetries": 1, "backoffMs": 1000},
    "parallelExecution": False,
    "continueOnError": False,
}


PERSONA_GENERATION_RECIPE: dict[str, Any] = {
    "id": "recipe_persona_generation_v1",
    "name": "Persona Generation Pipeline",
    "description": "Generate persona details and portrait images",
    "stageType": "stage_2_personas",
    "version": 1,
    "nodes": [
        {
            "id": "generate_persona_details",
            "name": "Generate Persona Details",
            "type": "text_generation",
            "order": 1,
            "inputMapping": {
                "productDescription": "external_input.productDescription",
                "targetAudience": "external_input.targetAudience",
                "numberOfPersonas": "external_input.numberOfPersonas",
            },
            "outputKey": "personaDetails",
            "aiModel": _TEXT_MODEL,
            "prompt": (
                "You are a casting director. Create {numberOfPersonas} distinct, believable "
                "personas of content creators who would genuinely recommend this product.\n\n"
                "Product: {productDescription}\n"
                "Target audience: {targetAudience}\n\n"
                "Vary age, profession, personality and background. Describe physical "
                "appearance in enough detail for a portrait photo.\n\n"
                "Respond with a JSON array only. Each element has the objects "
                "coreIdentity (name, age, demographic, motivation, bio), physicalAppearance "
                "(general, hair, build, clothingAesthetic, signatureDetails), "
                "personalityAndCommunication (demeanor, energyLevel, speechPatterns, values), "
                "lifestyleAndWorldview (profession, hobbies, lifestyleChoices, socialMediaHabits) "
                "and whyAndCredibility (whyTheyUseProduct, credibility, influenceStyle)."
            ),
            "parameters": {"numberOfPersonas": 3, "jsonFormat": True},
            "dependencies": [],
            "errorHandling": {"onError": "retry", "retryCount": 2, "timeout": 30000},
        },
        {
            "id": "generate_persona_images",
            "name": "Generate Persona Images",
            "type": "image_generation",
            "order": 2,
            "inputMapping": {"personaData": "personaDetails"},
            "outputKey": "personaImages",
            "aiModel": _IMAGE_MODEL,
            "prompt": (
                "Professional UGC-style portrait photo of {personaData.coreIdentity.name}, "
                "age {personaData.coreIdentity.age}. "
                "{personaData.physicalAppearance.general} "
                "Hair: {personaData.physicalAppearance.hair}. "
                "Style: {personaData.physicalAppearance.clothingAesthetic}. "
                "Demeanor: {personaData.personalityAndCommunication.demeanor}. "
                "Soft studio lighting, neutral background, natural friendly expression, "
                "direct eye contact."
            ),
            "parameters": {"fanOut": "personaData", "imageFormat": "jpg", "resolution": "1024x1024"},
            "dependencies": ["generate_persona_details"],
            "errorHandling": {"onError": "skip", "defaultOutput": None, "timeout": 60000},
        },
        {
            "id": "combine_and_upload",
            "name": "Combine Data and Upload",
            "type": "data_processing",
            "order": 3,
            "inputMapping": {
                "personaDetails": "personaDetails",
                "personaImages": "personaImages",
            },
            "outputKey": "finalPersonas",
            "parameters": {
                "combinationLogic": "merge_details_with_images",
                "primary": "personaDetails",
                "media": "personaImages",
            },
            "dependencies": ["generate_persona_images"],
            "errorHandling": {"onError": "fail", "timeout": 30000},
        },
    ],
    "edges": [
        {"from": "generate_persona_details", "to": "generate_persona_images"},
        {"from": "generate_persona_images", "to": "combine_and_upload"},
    ],
    "executionConfig": _EXECUTION_CONFIG,
    "metadata": {"createdBy": "system", "tags": ["persona", "stage_2", "default"]},
}


NARRATIVE_GENERATION_RECIPE: dict[str, Any] = {
    "id": "recipe_narrative_generation_v1",
    "name": "Narrative Generation Pipeline",
    "description": "Generate narrative themes for a product video",
    "stageType": "stage_3_narratives",
    "version": 1,
    "nodes": [
        {
            "id": "generate_narrative_themes",
            "name": "Generate Narrative Themes",
            "type": "text_generation",
            "order": 1,
            "inputMapping": {
                "productDescription": "external_input.productDescription",
                "targetAudience": "external_input.targetAudience",
                "numberOfNarratives": "external_input.numberOfNarratives",
                "selectedPersonas": "external_input.selectedPersonas",
            },
            "outputKey": "narrativeThemes",
            "aiModel": {**_TEXT_MODEL, "temperature": 0.8},
            "prompt": (
                "You are a creative director for short UGC product videos.\n\n"
                "Product: {productDescription}\n"
                "Target audience: {targetAudience}\n"
                "Creators: {selectedPersonas}\n\n"
                "Propose {numberOfNarratives} narrative approaches. Respond with a JSON array "
                "only, each element having id, title, description, structure (array of beats), "
                "tone and whyItWorks."
            ),
            "parameters": {"numberOfNarratives": 6, "jsonFormat": True},
            "dependencies": [],
            "errorHandling": {"onError": "retry", "retryCount": 2, "timeout": 30000},
        },
    ],
    "edges": [],
    "executionConfig": _EXECUTION_CONFIG,
    "metadata": {"createdBy": "system", "tags": ["narrative", "stage_3", "default"]},
}


STORYBOARD_GENERATION_RECIPE: dict[str, Any] = {
    "id": "recipe_storyboard_generation_v1",
    "name": "Storyboard Generation Pipeline",
    "description": "Generate storyboard scenes and scene images",
    "stageType": "stage_4_storyboard",
    "version": 1,
    "nodes": [
        {
            "id": "generate_story_scenes",
            "name": "Generate Story Scenes",
            "type": "text_generation",
            "order": 1,
            "inputMapping": {
                "productDescription": "external_input.productDescription",
                "targetAudience": "external_input.targetAudience",
                "selectedPersonaName": "external_input.selectedPersonaName",
                "selectedPersonaDescription": "external_input.selectedPersonaDescription",
                "narrativeTheme": "external_input.narrativeTheme",
                "narrativeStructure": "external_input.narrativeStructure",
                "numberOfScenes": "external_input.numberOfScenes",
                "videoDuration": "external_input.videoDuration",
            },
            "outputKey": "storyScenes",
            "aiModel": _TEXT_MODEL,
            "prompt": (
                "Write a {numberOfScenes}-scene storyboard for a {videoDuration} UGC video.\n\n"
                "Product: {productDescription}\n"
                "Audience: {targetAudience}\n"
                "Creator: {selectedPersonaName}, {selectedPersonaDescription}\n"
                "Narrative: {narrativeTheme}\n"
                "Structure: {narrativeStructure}\n\n"
                "Respond with a JSON array only, each scene having sceneNumber, title, "
                "description, location, visualElements, cameraAngle and duration."
            ),
            "parameters": {"numberOfScenes": 6, "videoDuration": "30s", "jsonFormat": True},
            "dependencies": [],
            "errorHandling": {"onError": "retry", "retryCount": 2, "timeout": 30000},
        },
        {
            "id": "generate_scene_images",
            "name": "Generate Scene Images",
            "type": "image_generation",
            "order": 2,
            "inputMapping": {
                "sceneData": "storyScenes",
                "selectedPersonaName": "external_input.selectedPersonaName",
                "selectedPersonaDescription": "external_input.selectedPersonaDescription",
            },
            "outputKey": "sceneImages",
            "aiModel": _IMAGE_MODEL,
            "prompt": (
                "Storyboard frame, scene {sceneData.sceneNumber}: {sceneData.title}. "
                "{sceneData.description} Location: {sceneData.location}. "
                "Camera: {sceneData.cameraAngle}. Featuring {selectedPersonaName}, "
                "{selectedPersonaDescription}. Photorealistic, natural lighting."
            ),
            "parameters": {"fanOut": "sceneData", "imageFormat": "jpg", "style": "professional_ugc"},
            "dependencies": ["generate_story_scenes"],
            "errorHandling": {"onError": "skip", "defaultOutput": None, "timeout": 60000},
        },
        {
            "id": "upload_and_save_scenes",
            "name": "Upload and Save Scenes",
            "type": "data_processing",
            "order": 3,
            "inputMapping": {
                "sceneDetails": "storyScenes",
                "sceneImages": "sceneImages",
            },
            "outputKey": "finalStoryboard",
            "parameters": {
                "combineLogic": "merge_scenes_with_images",
                "primary": "sceneDetails",
                "media": "sceneImages",
            },
            "dependencies": ["generate_scene_images"],
            "errorHandling": {"onError": "fail", "timeout": 30000},
        },
    ],
    "edges": [
        {"from": "generate_story_scenes", "to": "generate_scene_images"},
        {"from": "generate_scene_images", "to": "upload_and_save_scenes"},
    ],
    "executionConfig": _EXECUTION_CONFIG,
    "metadata": {"createdBy": "system", "tags": ["storyboard", "stage_4", "default"]},
}


SCREENPLAY_GENERATION_RECIPE: dict[str, Any] = {
    "id": "recipe_screenplay_generation_v1",
    "name": "Screenplay Generation Pipeline",
    "description": "Turn storyboard scenes into a timed screenplay",
    "stageType": "stage_5_screenplay",
    "version": 1,
    "nodes": [
        {
            "id": "generate_screenplay_timings",
            "name": "Generate Screenplay Timings",
            "type": "text_generation",
            "order": 1,
            "inputMapping": {
                "storyboardScenes": "external_input.storyboardScenes",
                "videoDuration": "external_input.videoDuration",
                "selectedPersonaName": "external_input.selectedPersonaName",
            },
            "outputKey": "screenplayEntries",
            "aiModel": {**_TEXT_MODEL, "temperature": 0.6},
            "prompt": (
                "Convert these storyboard scenes into a screenplay for a {videoDuration} video "
                "presented by {selectedPersonaName}.\n\n{storyboardScenes}\n\n"
                "Respond with a JSON array only, one entry per scene with sceneNumber, "
                "timeStart, timeEnd, visual, cameraFlow, script, backgroundMusic and transition. "
                "Timings must be contiguous and add up to the video duration."
            ),
            "parameters": {"jsonFormat": True},
            "dependencies": [],
            "errorHandling": {"onError": "retry", "retryCount": 2, "timeout": 30000},
        },
    ],
    "edges": [],
    "executionConfig": _EXECUTION_CONFIG,
    "metadata": {"createdBy": "system", "tags": ["screenplay", "stage_5", "default"]},
}


SEED_RECIPES: dict[str, dict[str, Any]] = {
    "persona": PERSONA_GENERATION_RECIPE,
    "narrative": NARRATIVE_GENERATION_RECIPE,
    "storyboard": STORYBOARD_GENERATION_RECIPE,
    "screenplay": SCREENPLAY_GENERATION_RECIPE,
}


def get_all_seed_recipes() -> list[dict[str, Any]]:
    return [copy.deepcopy(recipe) for recipe in SEED_RECIPES.values()]


def get_seed_recipe(name: str) -> dict[str, Any] | None:
    recipe = SEED_RECIPES.get(name)
    return copy.deepcopy(recipe) if recipe is not None else None


def with_provider(recipe: dict[str, Any], provider: str, model_name: str | None = None) -> dict[str, Any]:
    """Copy of a recipe document whose generation nodes all use one provider.

    Used to run the seeds offline against the ``echo`` provider.
    """
    patched = copy.deepcopy(recipe)
    for node in patched["nodes"]:
        if "aiModel" in node:
            node["aiModel"] = {**node["aiModel"], "provider": provider, "modelName": model_name or provider}
    return patched


async def seed_recipes(
    manager: RecipeManager, provider: str | None = None, model_name: str | None = None
) -> list[str]:
    """Store every seed recipe that does not exist yet.

    Returns:
        Ids of the recipes created by this call.
    """
    created: list[str] = []
    for recipe in get_all_seed_recipes():
        if await manager.get_recipe(recipe["id"]) is not None:
            logger.debug("Seed recipe %s already present", recipe["id"])
            continue
        if provider:
            recipe = with_provider(recipe, provider, model_name)
        await manager.create_recipe(recipe, user_id="system")
        created.append(recipe["id"])
    logger.info("Seeded %d recipe(s)", len(created))
    return created
