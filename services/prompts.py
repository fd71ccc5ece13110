"""
Prompt templates for the analysis and pose-rendering models.

Templates are plain constants; builders only decide the concatenation order
and where user instructions are interpolated. Bump the version constants
when template text changes so logged requests can be traced to a revision.
"""

ANALYSIS_PROMPT_VERSION = "analysis-v4"
RENDER_PROMPT_VERSION = "render-v3"


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

ANALYSIS_TASK = """\
Analyze this image and output a single JSON object that matches the response schema.
Extract every visual detail of the subject and the scene into the structured fields,
then write "fullPrompt" as one cohesive, high-quality paragraph that combines them all."""

USER_OVERRIDE_TEMPLATE = """\
USER INSTRUCTIONS (HIGHEST PRIORITY):
The user has requested the following changes. Reflect them in every relevant field and
in "fullPrompt", even when they contradict what is visible in the image:
\"\"\"
{instructions}
\"\"\""""

BEAUTY_FRAMING_POLICY = """\
PERSON DESCRIPTION POLICY (BEAUTY FRAMING):
- Describe people in an attractive, flattering, idealized way, as a fashion or portrait
  photographer would brief a model.
- Prefer youthful, refined vocabulary ("youthful", "graceful", "radiant skin",
  "well-proportioned") regardless of the subject's literal age.
- State age as a flattering range (e.g. "20代", "mid 20s") rather than a precise estimate.
- Never use unflattering descriptors (wrinkles, blemishes, tired, heavy, aged)."""

SCENE_FACTUALITY_POLICY = """\
SCENE DESCRIPTION POLICY (FACTUAL, NOT BEAUTIFIED):
- Identify visible brands, logos, shop names, signage text and landmarks literally and by
  name (e.g. "Starbucks cup with green siren logo", "Shibuya Scramble Crossing").
- Name recognizable locations when you can identify them; otherwise describe them precisely.
- Do NOT idealize, genericize or invent anything in the environment, lighting or camera
  fields. Describe only what is actually visible."""

EMOTION_ARCHETYPES = """\
EMOTIONAL PROFILE GUIDE:
Classify the subject into the closest of these five archetypes and fill EMOTIONAL_PROFILE
in the same style. "Avoid" lists traits that would break the archetype.

1. Playful
   Emotion: cheerful, mischievous joy
   Mood: light, bubbly, carefree
   Expression: bright smile, playful wink, tongue slightly out
   Avoid: serious, gloomy, stiff posture, blank stare

2. Seeking-Attention
   Emotion: longing to be noticed, gentle neediness
   Mood: sweet, slightly pouty, clingy
   Expression: upturned eyes looking at the camera, small pout, head tilted
   Avoid: indifferent, looking away, cold or aloof expression

3. Confident
   Emotion: self-assured pride
   Mood: bold, poised, powerful
   Expression: steady direct gaze, subtle smirk, chin slightly raised
   Avoid: shy, hesitant, hunched shoulders, nervous smile

4. Vulnerable
   Emotion: fragile, tender sensitivity
   Mood: quiet, delicate, melancholic
   Expression: moist eyes, lowered gaze, lips slightly parted
   Avoid: aggressive, loud laughter, overly energetic pose

5. Intimate
   Emotion: warm closeness and affection
   Mood: soft, private, romantic
   Expression: relaxed half-closed eyes, gentle smile, soft focus on the viewer
   Avoid: distant, formal, posed commercial smile"""

LANGUAGE_RULES = """\
OUTPUT RULES:
1. Return both "japanese" and "english" objects. Each must contain every section and
   every field of the schema; never omit a field and never leave "fullPrompt" empty.
2. Write every value of "japanese" in natural Japanese and every value of "english" in
   natural English. Both must describe the same interpretation of the image.
3. If a detail is not visible, say so explicitly (e.g. "見えない" / "not visible")
   instead of leaving the field out.
4. Set SCENE.Aspect_Ratio to the image's apparent aspect ratio (e.g. "9:16")."""


# ---------------------------------------------------------------------------
# Pose rendering
# ---------------------------------------------------------------------------

POSE_SOURCE_LABEL = "Image 1 (POSE SOURCE): body, pose, clothing and camera angle."
FACE_REFERENCE_LABEL = "Image 2 (FACE REFERENCE): face, head and hairstyle identity."

IDENTITY_DIRECT = """\
Create a black and white line drawing that reproduces the pose of the subject in this image.
Keep the exact body position, limb angles, head angle and camera framing. Do not mirror or flip."""

IDENTITY_FACE_SWAP = """\
FACE/HEAD SWAP:
- Keep the body, pose, clothing, framing and camera angle of Image 1 exactly.
- Replace the head, face and hairstyle of Image 1 entirely with those of Image 2.
- Rotate and tilt the face from Image 2 so it matches the head angle of the person in Image 1.
- Then produce a black and white line drawing of the combined figure. Do not mirror or flip."""

STYLE_DETAILED = """\
STYLE (DETAILED CHARACTER LINE ART):
- Clean black lines on a pure white background, moderately detailed, recognizable person.
- Legible facial features (eyes, eyebrows, nose, lips) and expression.
- Draw clothing fold lines, seams and the silhouette of accessories.
- Indicate hair texture and flow with line strokes.
- No color, no shading fills, no background objects, no text."""

STYLE_ABSTRACT = """\
STYLE (ABSTRACT MANNEQUIN):
- Thick, clean black lines on a pure white background, like a drawing mannequin.
- Blank, simplified head shape with NO facial features and NO hair detail; only a faint
  eye line and center line to show which way the head is facing.
- Clean geometric outline of the body: torso, joints and limbs as simple forms.
- No clothing patterns, no accessories, no background. High contrast.
- The goal is an exact pose reference, not a likeness."""

RENDER_OVERRIDE_TEMPLATE = """\
USER INSTRUCTIONS (HIGHEST PRIORITY, apply even if they contradict the images or the style above):
{instructions}"""
