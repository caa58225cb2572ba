from typing import Optional

_RUBRIC = """For each thumbnail, evaluate these factors (0-100 scale):

1. Face Visibility: Are faces clearly visible? Is emotion identifiable?
   Rate higher for: clear facial expressions, direct eye contact, close-up faces
   Rate lower for: obscured faces, small faces, no emotion visible

2. Text Readability: Is text legible at thumbnail size (320x180)?
   Rate higher for: bold text, high contrast, 3-5 words max, large font
   Rate lower for: small text, low contrast, too many words, complex fonts

3. Color Contrast: Do colors stand out? Is there visual hierarchy?
   Rate higher for: complementary colors, bold contrasts, clear focal point
   Rate lower for: muddy colors, low contrast, cluttered composition

4. Visual Clarity: Is the thumbnail easy to understand at a glance?
   Rate higher for: simple composition, clear subject, not cluttered
   Rate lower for: too many elements, confusing layout, unclear subject

5. Emotional Impact: Does it evoke curiosity, emotion, or intrigue?
   Rate higher for: strong emotions, mystery, surprise elements
   Rate lower for: bland expressions, boring composition, no hook

Provide:
- Overall score (weighted average, 0-100)
- Individual scores for each factor
- Predicted CTR (realistic: 2-12% range)
- Whether faces detected (boolean)
- Any text detected (string, empty if none)
- 3-5 specific, actionable recommendations
- Which thumbnail is the winner (0-indexed, exactly one)

Thumbnails are attached in order; the first image is thumbnailIndex 0.

Return ONLY valid JSON in this exact format:
{
  "thumbnails": [
    {
      "thumbnailIndex": 0,
      "overallScore": 87,
      "scores": {
        "faceVisibility": 95,
        "textReadability": 82,
        "colorContrast": 88,
        "visualClarity": 90,
        "emotionalImpact": 85
      },
      "predictedCTR": 8.7,
      "faceDetected": true,
      "textDetected": "BUILD iOS APPS",
      "recommendations": [
        "Excellent face visibility creates strong connection",
        "Text could be 15% larger for mobile viewing",
        "Strong color contrast makes thumbnail pop",
        "Consider adding urgency element"
      ]
    }
  ],
  "winner": 0
}"""


def build_scoring_prompt(video_title: Optional[str] = None, category: Optional[str] = None) -> str:
    # 같은 (제목, 카테고리) 입력이면 항상 같은 프롬프트가 나와야 한다.
    lines = ["Analyze these YouTube thumbnail images for predicted CTR performance.", ""]
    if video_title:
        lines.append(f"Video Title: {video_title}")
    if category:
        lines.append(f"Category: {category}")
    lines.append("Target audience: YouTube viewers")
    lines.append("")
    lines.append(_RUBRIC)
    return "\n".join(lines)
