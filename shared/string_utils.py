# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import unicodedata


def strip_accents(text: str) -> str:
    """Removes combining diacritical marks (á -> a, ñ -> n)."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_for_search(text: str | None) -> str:
    """Lowercases and strips accents so 'Córdoba' matches 'cordoba'."""
    if not text:
        return ""
    return strip_accents(text.lower())


def tokenize_name(text: str | None) -> list[str]:
    """
    Splits a person or business name into normalized tokens.

    Tokens of a single character (initials, stray punctuation) are dropped.
    """
    return [token for token in normalize_for_search(text).split() if len(token) > 1]
