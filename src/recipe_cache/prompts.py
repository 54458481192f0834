"""Prompts for recipe generation and enrichment.

The user-message builders double as enrichment cache inputs, so the same
recipe always produces the same key whether it comes through the pipeline
or a stand-alone endpoint.
"""

GENERATION_SYSTEM_PROMPT = (
    "You are a professional chef. Return ONLY valid JSON with ingredients and directions "
    "arrays. Each ingredient must include quantity. Each direction must be a full step."
)

CLASSIFY_SYSTEM_PROMPT = """You are a culinary classification expert. Given a recipe, return JSON with the following structure and rules:

{
  "diet": [...],
  "cuisine": "string",
  "cooking_time": "string",
  "difficulty": "string"
}

Diet rules:
- Pick exactly one main category from ["vegan", "vegetarian", "pescetarian", "omnivore", "carnivore", "keto"] that best matches the recipe.
- Then optionally add other dietary attributes that do not contradict the main category (e.g., "gluten-free", "dairy-free", "nut-free") if they naturally apply.
- Never return "none" or "standard". If unsure, pick a plausible main category (like "vegetarian").
- No contradictory labels. For example, do not combine "vegan" and "carnivore", or "vegan" and "vegetarian".
- Return diet as an array of strings.

Cuisine rules:
- Provide a single cuisine type as a string (e.g., "Eastern European", "Italian"). If unsure, pick a plausible cuisine.

Cooking time rules:
- "cooking_time" should be a single string chosen from ["15 minutes", "30 minutes", "45 minutes", "1 hour", "2 hours"].
- Choose a reasonable estimate based on the recipe. If unsure, pick something plausible.

Difficulty rules:
- "difficulty" should be one of ["easy", "medium", "hard"].
- If unsure, pick one that best matches the complexity of the recipe.

Return only the JSON, no extra text."""

SUMMARY_SYSTEM_PROMPT = (
    "You are an SEO expert specializing in recipe descriptions. Create natural, informative "
    "summaries that help recipes rank well in search results while providing valuable "
    "information to readers."
)

MACRO_SYSTEM_PROMPT = """You are a nutritionist API that ONLY responds with JSON. Based on a given recipe, calculate the total calories and macros (proteins, carbs, fats) for the entire recipe and per serving. First, determine the number of servings based on the recipe portions or ingredients. Then provide the total values for calories, proteins, carbs, and fats in grams, along with the number of servings. Structure the response EXACTLY as shown, with NO additional text or explanation:

{
  "servings": 4,
  "total": {
    "calories": 1200,
    "proteins": 60,
    "carbs": 140,
    "fats": 45
  },
  "per_serving": {
    "calories": 300,
    "proteins": 15,
    "carbs": 35,
    "fats": 11.25
  }
}"""

PAIRING_SYSTEM_PROMPT = (
    "You are an expert sommelier and culinary pairing specialist. Given a recipe, suggest an "
    "ideal dish pairing (e.g., wine, side dish, or dessert) that complements it. Respond "
    "concisely and elegantly. Do not use any markdown formatting or asterisks in your response."
)

# Sampling per prompt: (temperature, max_tokens)
GENERATION_PARAMS = (0.5, 1000)
CLASSIFY_PARAMS = (0.0, 300)
SUMMARY_PARAMS = (0.5, 100)
MACRO_PARAMS = (0.7, 500)
PAIRING_PARAMS = (0.7, 500)


def build_generation_prompt(title: str, context: str = "", reference: str = "") -> str:
    """User message asking for a recipe as strict JSON.

    Args:
        title: Recipe title
        context: Optional description, already truncated
        reference: Optional reference recipes from the corpus
    """
    parts = [
        "Generate a complete recipe with proper ingredients and directions. Return ONLY valid JSON.",
        "",
        f"Recipe: {title}",
    ]
    if context:
        parts += ["", f"Description/context: {context}"]
    if reference:
        parts += ["", "Use these reference recipes as inspiration (adapt, don't copy verbatim):", reference]
    parts += [
        "",
        "Return this exact JSON structure (no other text):",
        "{",
        '  "ingredients": ["2 cups canned white beans, drained and rinsed", "3 stalks celery, thinly sliced"],',
        '  "directions": ["In a large bowl, combine the white beans, celery, and onion.", "Pour the dressing over and toss."]',
        "}",
        "",
        "Rules:",
        '- ingredients: array of strings, each with quantity (e.g. "2 cups rice", "1/2 tsp salt")',
        "- directions: array of strings, each a complete step",
        "- Minimum 5 ingredients, 4 directions",
    ]
    return "\n".join(parts)


def build_classify_input(title: str, ingredients: list[str], directions: list[str]) -> str:
    return "\n\n".join(
        [
            f"Recipe: {title}",
            "Ingredients:\n" + "\n".join(ingredients),
            "Directions:\n" + "\n".join(directions),
        ]
    )


def build_summary_input(
    title: str,
    ingredients: list[str],
    directions: list[str],
    cuisine: str | None = None,
    diet: list[str] | None = None,
    cooking_time: str | None = None,
    difficulty: str | None = None,
) -> str:
    """User message for the SEO summary, including the classification fields."""
    ingredient_lines = "\n".join(f"- {i}" for i in ingredients)
    direction_lines = "\n".join(f"{n}. {d}" for n, d in enumerate(directions, start=1))
    return f"""Generate a brief, SEO-optimized description for a recipe with the following details:

Title: {title}
Cuisine: {cuisine or "unknown"}
Diet: {", ".join(diet or []) or "unknown"}
Cooking Time: {cooking_time or "unknown"}
Difficulty: {difficulty or "unknown"}

Ingredients:
{ingredient_lines}

Directions:
{direction_lines}

IMPORTANT RULES:
1. Write a single paragraph (2-3 sentences)
2. Include key ingredients and cooking method
3. Mention cuisine type and dietary information
4. Use natural, engaging language optimized for search
5. Keep it between 30-50 words
6. Focus on what makes this recipe special
7. Do not use superlatives or marketing language"""


def build_recipe_text(title: str, ingredients: list[str], directions: list[str]) -> str:
    """Plain recipe text used for the macro and pairing prompts."""
    return (
        f"{title}\n\nIngredients:\n" + "\n".join(ingredients) + "\n\nDirections:\n" + "\n".join(directions)
    )
