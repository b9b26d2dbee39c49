"""Simple CLI tool to stream a WAV file to the Engress WebSocket API."""

import asyncio
import json
import sys
import wave

import websockets

FRAME_SECONDS = 1.0


async def stream_wav(path: str, topics: list[str], uri: str = "ws://localhost:8000/ws"):
    try:
        async with websockets.connect(uri) as websocket:
            print(f"Connected to {uri}")
            await websocket.send(json.dumps(topics))

            ready = await websocket.recv()
            if ready != "READY":
                print(f"Unexpected reply: {ready}")
                return
            print(f"[Signal] {ready}")

            async def receive_messages():
                try:
                    async for message in websocket:
                        kind, content, began_at = json.loads(message)
                        if kind == 0:
                            print(f"TRANSCRIBED @{began_at}: {content}")
                        elif kind == 1:
                            covered = [topics[int(i) - 1] for i in content.split() if i.isdigit() and 0 < int(i) <= len(topics)]
                            print(f"RESPONSE @{began_at}: {content} {covered}")
                except websockets.exceptions.ConnectionClosed:
                    print("Connection closed")

            receive_task = asyncio.create_task(receive_messages())

            with wave.open(path, "rb") as wav:
                if wav.getnchannels() != 1 or wav.getsampwidth() != 2:
                    print("Expected a mono 16-bit WAV file")
                    return
                frames_per_chunk = int(wav.getframerate() * FRAME_SECONDS)
                while True:
                    chunk = wav.readframes(frames_per_chunk)
                    if not chunk:
                        break
                    await websocket.send(chunk)
                    await asyncio.sleep(FRAME_SECONDS)

            # Trailing silence so the last utterance closes
            silence = bytes(frames_per_chunk * 2)
            for _ in range(10):
                await websocket.send(silence)
                await asyncio.sleep(FRAME_SECONDS)

            await asyncio.sleep(5)
            receive_task.cancel()

    except Exception as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: stream_wav.py <file.wav> <topic> [<topic> ...]")
        sys.exit(1)
    asyncio.run(stream_wav(sys.argv[1], sys.argv[2:]))
