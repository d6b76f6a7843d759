"""
Canonical answer vocabularies for the Foods class surveys.

Phrase order is match priority. The peer-review questions (planning,
cooking, cleaning) share one participation scale; each self-reflection
question has its own.
"""

from __future__ import annotations

from typing import Dict

from team_feedback.models import ReflectionCategory, ScoreVocabulary

PARTICIPATION = ScoreVocabulary.from_mapping(
    "participation",
    {
        # Must precede the bare "participated" it contains
        "actively participated": 4,
        "somewhat participated": 2,
        "didn't participate": 1,
        "did not participate": 1,
        "participated": 3,
    },
)

PROFESSIONALISM = ScoreVocabulary.from_mapping(
    "professionalism",
    {
        "I can sometimes participate in Foods class in a professional manner": 2,
        "I can usually participate in Foods class in a professional manner": 3,
        "I can always participate in Foods class in a professional manner": 4,
        "I can work towards participating in Foods class in a professional manner": 2,
    },
)

ENGAGEMENT = ScoreVocabulary.from_mapping(
    "engagement",
    {
        "I get bored when watching the cooking videos": 2,
        "I like to talk to my teammate about what is happening in the video": 3,
        "I like to think about how to put the recipe together when watching to cooking videos": 4,
        "I don't find the videos useful": 2,
    },
)

INSTRUCTIONS = ScoreVocabulary.from_mapping(
    "instructions",
    {
        "I stop for instructions on cooking days but get distracted": 2,
        "I stop to HEAR the instructions from Mrs. K on cooking days": 3,
        "I stop to LISTEN to the instructions from Mrs. K on cooking days": 4,
        "I am usually too busy in the kitchen to stop and listen to instructions on cooking days": 2,
    },
)

SOUS_CHEF = ScoreVocabulary.from_mapping(
    "sous_chef",
    {
        "I will reluctantly be the sous chef": 2,
        "I don't mind being the sous chef": 3,
        "I love being the sous chef": 4,
        "I avoid being the sous chef": 2,
    },
)

RECIPE = ScoreVocabulary.from_mapping(
    "recipe",
    {
        "I like to learn how to make a recipe by watching my teammates": 2,
        "I reference the recipe while cooking": 3,
        "I follow the recipe instructions step by step": 4,
        "My favorite thing to do in the kitchen is to get the ingredients": 2,
    },
)

QUESTIONS = ScoreVocabulary.from_mapping(
    "questions",
    {
        "I am too embarrassed or too shy to ask questions about cooking": 2,
        "I ask clarifying questions while COOKING": 3,
        "I ask clarifying questions while PLANNING": 4,
        "I ask what I need to do next while cooking": 2,
    },
)

PROJECT = ScoreVocabulary.from_mapping(
    "project",
    {
        "I haven't started": 1,
        "I have yet to contribute to the magazine": 1,
        "I have done one of these things": 2,
        "Some of the recipes we have made so far are": 2,
        "I have contributed in one or two of these ways": 2,
        "I have done two of these things": 2,
        "Most of the recipes we have made so far are in my recipe book": 3,
        "I have contributed in three of these ways": 3,
        "I have done three of these things": 3,
        "All the recipes we have made so far are in my recipe book": 4,
        "I have contributed to the magazine in all of these ways": 4,
        "I have done all of these things": 4,
    },
)

REFLECTION_VOCABULARIES: Dict[ReflectionCategory, ScoreVocabulary] = {
    ReflectionCategory.PROFESSIONALISM: PROFESSIONALISM,
    ReflectionCategory.ENGAGEMENT: ENGAGEMENT,
    ReflectionCategory.INSTRUCTIONS: INSTRUCTIONS,
    ReflectionCategory.SOUS_CHEF: SOUS_CHEF,
    ReflectionCategory.RECIPE: RECIPE,
    ReflectionCategory.QUESTIONS: QUESTIONS,
    ReflectionCategory.PROJECT: PROJECT,
}
