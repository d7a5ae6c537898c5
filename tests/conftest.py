"""
Shared fixtures: ComfyUI workflows in API format.
"""

import json

import pytest


def _txt2img():
    return {
        "3": {
            "class_type": "KSampler",
            "inputs": {
                "seed": 42,
                "steps": 20,
                "cfg": 7.5,
                "sampler_name": "euler",
                "scheduler": "normal",
                "denoise": 1.0,
                "model": ["4", 0],
                "positive": ["6", 0],
                "negative": ["7", 0],
                "latent_image": ["5", 0],
            },
        },
        "4": {
            "class_type": "CheckpointLoaderSimple",
            "inputs": {"ckpt_name": "v1-5-pruned-emaonly.safetensors"},
        },
        "5": {
            "class_type": "EmptyLatentImage",
            "inputs": {"width": 512, "height": 512, "batch_size": 1},
        },
        "6": {
            "class_type": "CLIPTextEncode",
            "inputs": {"text": "beautiful landscape", "clip": ["4", 1]},
            "_meta": {"title": "Positive"},
        },
        "7": {
            "class_type": "CLIPTextEncode",
            "inputs": {"text": "blurry, low quality", "clip": ["4", 1]},
        },
        "8": {
            "class_type": "VAEDecode",
            "inputs": {"samples": ["3", 0], "vae": ["4", 2]},
        },
        "9": {
            "class_type": "SaveImage",
            "inputs": {"filename_prefix": "ComfyUI", "images": ["8", 0]},
        },
    }


def _sampler_custom():
    return {
        "10": {
            "class_type": "SamplerCustom",
            "inputs": {
                "add_noise": True,
                "noise_seed": 7,
                "cfg": 3.0,
                "model": ["11", 0],
                "positive": ["12", 0],
                "negative": ["13", 0],
                "sampler": ["14", 0],
                "sigmas": ["15", 0],
                "latent_image": ["16", 0],
            },
        },
        "11": {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "sdxl.safetensors"}},
        "12": {"class_type": "CLIPTextEncode", "inputs": {"text": "a cat", "clip": ["11", 1]}},
        "13": {"class_type": "CLIPTextEncode", "inputs": {"text": "", "clip": ["11", 1]}},
        "14": {"class_type": "KSamplerSelect", "inputs": {"sampler_name": "euler_ancestral"}},
        "15": {
            "class_type": "BasicScheduler",
            "inputs": {"scheduler": "karras", "steps": 25, "denoise": 1.0, "model": ["11", 0]},
        },
        "16": {"class_type": "EmptyLatentImage", "inputs": {"width": 1024, "height": 1024, "batch_size": 1}},
    }


@pytest.fixture
def txt2img_workflow():
    """Standard KSampler text-to-image workflow."""
    return _txt2img()


@pytest.fixture
def txt2img_json(txt2img_workflow):
    return json.dumps(txt2img_workflow)


@pytest.fixture
def sampler_custom_workflow():
    """SamplerCustom workflow with KSamplerSelect and BasicScheduler nodes."""
    return _sampler_custom()
