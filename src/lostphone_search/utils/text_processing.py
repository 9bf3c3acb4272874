"""Text processing utilities for queries and report fields."""

import re
from typing import List, Optional


class TextProcessor:
    """Normalizes free text for cache keys, matching and phonetic coding."""
    
    def __init__(self):
        self.whitespace_pattern = re.compile(r'\s+')
        self.word_pattern = re.compile(r'\S+')
    
    def clean_query(self, text: Optional[str]) -> str:
        """
        Normalize a free-text query.
        
        Args:
            text: Raw query text
            
        Returns:
            Trimmed, lowercased text with whitespace runs collapsed
        """
        if not text:
            return ""
        return self.whitespace_pattern.sub(' ', text).strip().lower()
    
    def clean_label(self, text: Optional[str]) -> Optional[str]:
        """Trim a location-style label; blank labels become None."""
        if text is None:
            return None
        text = self.whitespace_pattern.sub(' ', str(text)).strip()
        return text or None
    
    def split_words(self, text: Optional[str]) -> List[str]:
        """Split field text into whitespace separated words."""
        if not text:
            return []
        return self.word_pattern.findall(str(text))
