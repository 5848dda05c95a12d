"""
Poster prompts — turn a handful of artist names into an instruction for
the text model, which writes a text-to-image prompt back.
"""

from __future__ import annotations

from typing import List


class PosterPrompts:

    @staticmethod
    def poster_prompt(artist_names: List[str]) -> str:
        return f"""You are a prompt engineer for a text-to-image model.
Given a list of music artists, generate a highly detailed and cohesive album-poster style image that blends their aesthetics into one harmonious scene.

Requirements for the prompt you output:
- Capture the distinct moods and energies of the artists' styles.
- Specify visual elements fitting each artist's sound: landscapes, objects, environments, or symbols, blending them naturally.
- Suggest a color palette that reflects the unique aesthetic of each artist while ensuring they work together harmoniously.
- Describe the overall art style (e.g., surreal, vaporwave, grunge, minimalistic, etc.).
- Mention lighting, textures, and dynamic elements to give the image life and energy.
- **Strictly avoid** including any text, faces, or human figures unless otherwise specified.
- Ensure the description feels original, vivid, and image-focused, with seamless integration of the different artistic influences.
- The final output should be one detailed paragraph, ready to feed directly into a text-to-image model.

**Input Example:**
Artist: Tame Impala, The Prodigy, Nirvana, Bon Iver

**Output Example:**
A surreal and atmospheric poster that blends the distinct styles of Tame Impala, The Prodigy, Nirvana, and Bon Iver into a cohesive visual masterpiece. Picture a dreamlike scene with a tranquil beach illuminated by soft neon lights, inspired by Tame Impala's smooth, psychedelic sound. The ocean waves reflect vibrant pastel colors, blending into a dark, gritty cityscape where sharp geometric shapes and glitch effects explode outward, channeling The Prodigy's high-energy, industrial spirit. Intertwined in the scene, decaying buildings, overgrown with vines, evoke the raw, rebellious tone of Nirvana's grunge. In the foreground, glowing orbs drift lazily through a misty forest, casting soft light and creating an ethereal atmosphere that captures Bon Iver's introspective, emotional depth. The overall color palette should blend cool blues, neon pinks, muted grays, and vibrant greens, while textures range from smooth, fluid gradients to gritty, distressed surfaces. The lighting should have dynamic contrasts, with soft glows merging into intense bursts of light, symbolizing the merging of calm and chaos. Style: surreal and atmospheric with a dreamlike quality, blending soft gradients with sharp, glitchy distortions and industrial textures. No text, faces, or human figures should appear.

**Now, the new input:**
Artists: {", ".join(artist_names)}
"""

    @staticmethod
    def image_request(poster_prompt: str) -> str:
        """Final message sent to the completion API."""
        return f"Generate an image for the following prompt: {poster_prompt}"
