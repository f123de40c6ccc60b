# src/recipes/manager.py — v1
"""Recipe definition store — CRUD, versioning, tags and search.

Recipes live in the ``recipes`` collection of the document store as
camelCase documents. Invalid recipes are refused before anything is
written.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic.alias_generators import to_camel

from recipeflow.core.errors import RecipeNotFoundError, ValidationError
from recipeflow.core.models import Recipe
from recipeflow.pipeline.validator import validate_document
from recipeflow.store.base_document_store import BaseDocumentStore

logger = logging.getLogger(__name__)

RECIPES_COLLECTION = "recipes"

# Top-level fields whose change alters how a recipe runs.
_STRUCTURAL_FIELDS = frozenset({"nodes", "edges", "executionConfig"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RecipeManager:
    """Store and query recipes.

    Args:
        store: Document store backend.
        allow_orphan_nodes: Validation rule applied on create/update.
    """

    def __init__(self, store: BaseDocumentStore, allow_orphan_nodes: bool = True) -> None:
        self._store = store
        self._allow_orphans = allow_orphan_nodes

    def _validated(self, document: dict[str, Any]) -> Recipe:
        recipe, result = validate_document(document, allow_orphan_nodes=self._allow_orphans)
        if recipe is None or not result.valid:
            raise ValidationError(result.errors, recipe_id=document.get("id") or None)
        return recipe

    async def _save(self, recipe: Recipe) -> Recipe:
        await self._store.put(RECIPES_COLLECTION, recipe.id, recipe.to_document())
        return recipe

    # --- CRUD ---

    async def create_recipe(self, data: dict[str, Any] | Recipe, user_id: str = "system") -> Recipe:
        """Validate and store a new recipe.

        Seed recipes carry their own id; others get ``recipe_<uuid>``.

        Raises:
            ValidationError: With every structural violation found.
        """
        document = data.to_document() if isinstance(data, Recipe) else dict(data)
        document["id"] = document.get("id") or f"recipe_{uuid.uuid4().hex}"
        recipe = self._validated(document)

        now = _now()
        recipe.metadata.created_at = now
        recipe.metadata.updated_at = now
        recipe.metadata.created_by = user_id
        recipe.metadata.is_active = True
        await self._save(recipe)
        logger.info("Recipe %s created (%d nodes)", recipe.id, len(recipe.nodes))
        return recipe

    async def get_recipe(self, recipe_id: str) -> Recipe | None:
        document = await self._store.get(RECIPES_COLLECTION, recipe_id)
        return Recipe.model_validate(document) if document is not None else None

    async def require_recipe(self, recipe_id: str) -> Recipe:
        recipe = await self.get_recipe(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        return recipe

    async def update_recipe(self, recipe_id: str, updates: dict[str, Any]) -> Recipe:
        """Apply a partial update (camelCase or snake_case keys).

        Changing nodes, edges or executionConfig bumps the version.
        Metadata updates are merged field by field.

        Raises:
            RecipeNotFoundError: Unknown recipe id.
            ValidationError: The updated recipe is invalid.
        """
        updates = {to_camel(key) if "_" in key else key: value for key, value in updates.items()}
        current = await self.require_recipe(recipe_id)
        document = current.to_document()
        patch = Recipe.model_validate({**document, **updates}).to_document()

        changed = {key for key, value in patch.items() if document.get(key) != value}
        structural = bool(changed & _STRUCTURAL_FIELDS) and "version" not in updates

        metadata = {**document["metadata"], **(updates.get("metadata") or {})}
        merged = {**patch, "id": recipe_id, "metadata": metadata}
        if structural:
            merged["version"] = current.version + 1

        recipe = self._validated(merged)
        recipe.metadata.updated_at = _now()
        await self._save(recipe)
        logger.info("Recipe %s updated (v%d)", recipe_id, recipe.version)
        return recipe

    async def delete_recipe(self, recipe_id: str) -> bool:
        deleted = await self._store.delete(RECIPES_COLLECTION, recipe_id)
        if deleted:
            logger.info("Recipe %s deleted", recipe_id)
        return deleted

    async def create_recipe_version(
        self, recipe_id: str, updates: dict[str, Any] | None = None, user_id: str = "system"
    ) -> Recipe:
        """Copy a recipe under a new id with ``version + 1``."""
        original = await self.require_recipe(recipe_id)
        document = {**original.to_document(), **(updates or {})}
        document["id"] = ""
        document["version"] = original.version + 1
        return await self.create_recipe(document, user_id)

    # --- Queries ---

    async def list_recipes(
        self,
        stage_type: str | None = None,
        is_active: bool | None = None,
        tags: list[str] | None = None,
    ) -> list[Recipe]:
        """List recipes, newest first.

        ``tags`` matches recipes carrying any of the given tags.
        """
        filters: dict[str, Any] = {}
        if stage_type:
            filters["stageType"] = stage_type
        if is_active is not None:
            filters["metadata.isActive"] = is_active

        documents = await self._store.query(RECIPES_COLLECTION, filters)
        recipes = [Recipe.model_validate(doc) for doc in documents]
        if tags:
            wanted = set(tags)
            recipes = [r for r in recipes if wanted & set(r.metadata.tags)]

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        recipes.sort(key=lambda r: r.metadata.created_at or epoch, reverse=True)
        return recipes

    async def get_recipes_by_stage_type(self, stage_type: str) -> list[Recipe]:
        return await self.list_recipes(stage_type=stage_type, is_active=True)

    async def get_all_active_recipes(self) -> list[Recipe]:
        return await self.list_recipes(is_active=True)

    async def search_recipes(self, term: str) -> list[Recipe]:
        """Case-insensitive match on name or description of active recipes."""
        needle = term.lower()
        return [
            recipe
            for recipe in await self.get_all_active_recipes()
            if needle in recipe.name.lower() or needle in recipe.description.lower()
        ]

    # --- Tags / activation ---

    async def add_tag(self, recipe_id: str, tag: str) -> Recipe:
        recipe = await self.require_recipe(recipe_id)
        tags = list(dict.fromkeys([*recipe.metadata.tags, tag]))
        return await self._set_metadata(recipe, tags=tags)

    async def remove_tag(self, recipe_id: str, tag: str) -> Recipe:
        recipe = await self.require_recipe(recipe_id)
        tags = [t for t in recipe.metadata.tags if t != tag]
        return await self._set_metadata(recipe, tags=tags)

    async def activate_recipe(self, recipe_id: str) -> Recipe:
        return await self._set_metadata(await self.require_recipe(recipe_id), is_active=True)

    async def deactivate_recipe(self, recipe_id: str) -> Recipe:
        """Soft delete: the recipe stays stored but drops out of active listings."""
        return await self._set_metadata(await self.require_recipe(recipe_id), is_active=False)

    async def _set_metadata(self, recipe: Recipe, **fields: Any) -> Recipe:
        recipe.metadata = recipe.metadata.model_copy(update={**fields, "updated_at": _now()})
        return await self._save(recipe)
