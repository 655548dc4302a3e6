"""Prompt templates for topic translation, article generation and span analysis."""
from models import language_name


def topic_translation_prompt(topic: str, source_lang: str, target_lang: str) -> str:
    return f"""Translate the following topic from {language_name(source_lang)} to {language_name(target_lang)}. Return ONLY the translated text without any explanation or additional formatting:

"{topic}\""""


def article_prompt(translated_topic: str, target_lang: str) -> str:
    return f"""You are an experienced language teacher creating a language learning article about "{translated_topic}" in {language_name(target_lang)}.

Write a passage of approximately 10000 characters that serves as an effective learning material. The text should:
- Use grammar structures appropriate for beginner to intermediate learners
- Include essential vocabulary and common expressions
- Incorporate cultural elements and practical usage scenarios
- Be engaging and relatable to language learners
- Flow naturally and maintain coherence
- Include key learning points and target expressions

Return ONLY the text content, without any additional formatting or explanation."""


def analysis_prompt(before: str, selected: str, after: str, source_lang: str, target_lang: str) -> str:
    source = language_name(source_lang)
    target = language_name(target_lang)
    return f"""As an experienced language teacher, analyze the following text in {target}, focusing especially on the part between >>> and <<<:

{before}>>>{selected}<<<{after}

Provide a detailed explanation in {source} about:
1. Key vocabulary words and their meanings from the selected text
2. Grammar points and structures used in the selected text
3. Usage notes and common patterns
4. How this part connects with the surrounding context
5. Practice exercises and application examples for learners

If the text contains German words or references to German language, please provide detailed explanations about their meanings and origins.

Format the response in JSON with the following structure:
{{
  "vocabulary": [
    {{
      "word": "word from selected text",
      "reading": "reading if applicable",
      "meaning": "meaning in {source}",
      "example": "example sentence",
      "exampleTranslation": "translation of example",
      "germanOrigin": "explanation of German origin if applicable"
    }}
  ],
  "grammar": [
    {{
      "pattern": "grammar pattern",
      "explanation": "detailed explanation",
      "example": "example from the text or similar",
      "exampleTranslation": "translation of example"
    }}
  ],
  "contextAnalysis": "explanation of how this part fits into the broader context",
  "notes": ["usage notes", "cultural points", "German language connections", "etc"],
  "exercises": [
    {{
      "type": "exercise type",
      "question": "exercise question",
      "options": ["option 1", "option 2", "option 3"],
      "answer": "correct answer",
      "explanation": "explanation of the answer"
    }}
  ]
}}"""
