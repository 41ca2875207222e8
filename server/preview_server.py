#!/usr/bin/env python3
"""
LaTeX to Word Preview Server
Provides HTTP server with WebSocket for live preview of LaTeX converted
to Word-ready HTML with MathML, plus a copy button that places the result
on the clipboard as text/html and text/plain
Updates are debounced: only the most recent input is rendered and pushed
"""

import sys
import argparse
import asyncio
import json
import time
import logging
from pathlib import Path
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread, Lock
import websockets

from latex_converter import LaTeXConverter, REWRITERS

DEFAULT_LOG_FILE = Path.home() / '.latex2word' / 'latex2word.log'

logger = logging.getLogger('latex2word')


def setup_logging(log_file=DEFAULT_LOG_FILE, level='INFO'):
    """Log to a file and to stderr"""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stderr)
        ]
    )


class PreviewServer:
    def __init__(self, port=8765, ws_port=8766, rewriter='parser', debounce_delay=0.3):
        logger.info(f"Initializing PreviewServer on port {port}, rewriter={rewriter}")
        self.port = port
        self.ws_port = ws_port
        self.converter = LaTeXConverter(rewriter=rewriter)
        self.current_html = ""
        self.current_source = ""
        self.clients = set()
        self.loop = None  # Will be set to the asyncio event loop

        # Debouncing state
        self._debounce_task = None
        self._debounce_delay = debounce_delay
        self._pending_update = None
        self._update_lock = Lock()
        self._sequence = 0

        # Performance monitoring
        self._update_count = 0
        self._total_processing_time = 0.0

    async def websocket_handler(self, websocket):
        """Handle WebSocket connections"""
        logger.info(f"New WebSocket connection from {websocket.remote_address}")
        self.clients.add(websocket)
        try:
            # Send current content immediately
            if self.current_html:
                logger.debug(f"Sending current HTML ({len(self.current_html)} bytes) to new client")
                await websocket.send(self._message())
            await websocket.wait_closed()
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            logger.info(f"WebSocket connection closed from {websocket.remote_address}")
            self.clients.discard(websocket)

    def _message(self):
        return json.dumps({
            'html': self.current_html,
            'source': self.current_source,
            'sequence': self._sequence,
        })

    async def broadcast_update(self, html, source):
        """Send update to all connected clients"""
        logger.debug(f"Broadcasting update to {len(self.clients)} clients ({len(html)} bytes)")
        self.current_html = html
        self.current_source = source
        if self.clients:
            message = self._message()
            clients = list(self.clients)
            results = await asyncio.gather(
                *[client.send(message) for client in clients],
                return_exceptions=True
            )
            for client, result in zip(clients, results):
                if isinstance(result, Exception):
                    logger.error(f"Failed to send to client {getattr(client, 'remote_address', '?')}: {result}")

    def process_latex(self, content):
        """Convert LaTeX to HTML with performance tracking"""
        start_time = time.time()
        logger.debug(f"Processing LaTeX: {len(content)} bytes")

        html = self.converter.convert(content)

        processing_time = time.time() - start_time
        self._total_processing_time += processing_time
        self._update_count += 1

        logger.info(f"LaTeX processed in {processing_time:.3f}s ({len(html)} bytes HTML)")
        return html

    async def queue_update(self, content):
        """Queue an update with debouncing"""
        logger.debug(f"Queuing update: {len(content)} bytes")
        with self._update_lock:
            self._sequence += 1
            self._pending_update = (self._sequence, content)

            # A newer input supersedes whatever is still waiting
            if self._debounce_task and not self._debounce_task.done():
                logger.debug("Cancelling previous debounce task")
                self._debounce_task.cancel()

            self._debounce_task = asyncio.create_task(self._debounced_update())
        return self._debounce_task

    async def _debounced_update(self):
        """Execute update after debounce delay"""
        try:
            await asyncio.sleep(self._debounce_delay)

            with self._update_lock:
                pending, self._pending_update = self._pending_update, None
            if pending is None:
                return

            sequence, content = pending
            html = self.process_latex(content)
            if sequence != self._sequence:
                logger.debug(f"Dropping stale render {sequence} (latest is {self._sequence})")
                return
            await self.broadcast_update(html, content)
        except asyncio.CancelledError:
            logger.debug("Debounce task cancelled")
        except Exception as e:
            logger.error(f"Error in debounced update: {e}", exc_info=True)

    def get_stats(self):
        """Get performance statistics"""
        avg_time = (self._total_processing_time / self._update_count) if self._update_count > 0 else 0
        return {
            'updates': self._update_count,
            'avg_processing_time_ms': avg_time * 1000,
            'total_time_s': self._total_processing_time,
            'cache': self.converter.get_cache_stats(),
            'math': self.converter.math_processor.get_stats(),
            'clients': len(self.clients),
        }

    def get_template_html(self):
        """Get the editor page"""
        return EDITOR_TEMPLATE.replace('{{WS_PORT}}', str(self.ws_port))


EDITOR_TEMPLATE = r"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>LaTeX to Word</title>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
            color: #333;
            background: #f6f8fa;
            height: 100vh;
            display: flex;
            flex-direction: column;
        }
        header {
            display: flex;
            justify-content: space-between;
            align-items: center;
            padding: 12px 20px;
            background: #fff;
            border-bottom: 1px solid #eaecef;
        }
        header h1 { font-size: 1.2em; }
        button {
            padding: 8px 16px;
            border: 0;
            border-radius: 6px;
            background: #0366d6;
            color: #fff;
            font-size: 14px;
            cursor: pointer;
        }
        button.secondary { background: #fff; color: #586069; border: 1px solid #d1d5da; margin-right: 8px; }
        main { flex: 1; display: flex; min-height: 0; }
        #editor {
            flex: 1;
            padding: 20px;
            border: 0;
            border-right: 1px solid #eaecef;
            resize: none;
            font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace;
            font-size: 14px;
            line-height: 1.6;
        }
        #editor:focus { outline: none; }
        #page-wrapper { flex: 1; overflow-y: auto; padding: 24px; }
        #preview {
            background: #fff;
            max-width: 21cm;
            min-height: 100%;
            margin: 0 auto;
            padding: 2.5cm;
            box-shadow: 0 1px 6px rgba(0, 0, 0, 0.15);
            font-family: Calibri, "Malgun Gothic", sans-serif;
            font-size: 11pt;
            line-height: 1.5;
        }
        #preview ul { padding-left: 2em; margin-bottom: 1em; }
        #preview li { margin-bottom: 0.25em; }
        #preview:empty::before { content: "The preview appears here."; color: #bbb; }
        .status {
            position: fixed;
            top: 10px;
            right: 10px;
            padding: 5px 10px;
            background: #28a745;
            color: white;
            border-radius: 4px;
            font-size: 12px;
            opacity: 0;
            transition: opacity 0.3s;
        }
        .status.show { opacity: 1; }
        .status.error { background: #dc3545; }
    </style>
</head>
<body>
    <div class="status" id="status">Connected</div>
    <header>
        <h1>LaTeX to Word</h1>
        <div>
            <button id="clear" class="secondary">Clear</button>
            <button id="copy">Copy for Word</button>
        </div>
    </header>
    <main>
        <textarea id="editor" spellcheck="false" placeholder="Type LaTeX here...">\section{LaTeX to Word}

This page converts LaTeX into content you can paste straight into Word.

\subsection{Text formatting}
Here is \textbf{bold}, \textit{italic} and \underline{underlined} text.

\subsection{Lists}
\begin{itemize}
  \item The first item.
  \item The second item.
\end{itemize}

\subsection{Math}
The Pythagorean theorem:
$$ a^2 + b^2 = c^2 $$

Inline math such as $ E = mc^2 $ works too.</textarea>
        <div id="page-wrapper"><div id="preview"></div></div>
    </main>

    <script>
        const editor = document.getElementById('editor');
        const preview = document.getElementById('preview');
        let ws = null;
        let lastSequence = 0;

        function connect() {
            ws = new WebSocket('ws://localhost:{{WS_PORT}}/ws');

            ws.onopen = function() {
                // A restarted server numbers its updates from 1 again
                lastSequence = 0;
                showStatus('Connected', false);
                sendUpdate();
            };

            ws.onmessage = function(event) {
                const data = JSON.parse(event.data);
                if (data.sequence < lastSequence) {
                    return;
                }
                lastSequence = data.sequence;
                preview.innerHTML = data.html;
            };

            ws.onerror = function(error) {
                showStatus('Connection error', true);
            };

            ws.onclose = function() {
                showStatus('Disconnected', true);
                setTimeout(connect, 2000);
            };
        }

        function sendUpdate() {
            fetch('/update', {
                method: 'POST',
                headers: {'Content-Type': 'application/json'},
                body: JSON.stringify({content: editor.value})
            }).catch(function() {
                showStatus('Update failed', true);
            });
        }

        function fallbackCopy() {
            const range = document.createRange();
            range.selectNodeContents(preview);
            const selection = window.getSelection();
            selection.removeAllRanges();
            selection.addRange(range);
            const ok = document.execCommand('copy');
            selection.removeAllRanges();
            return ok;
        }

        async function copyForWord() {
            try {
                const item = new ClipboardItem({
                    'text/html': new Blob([preview.innerHTML], {type: 'text/html'}),
                    'text/plain': new Blob([editor.value], {type: 'text/plain'})
                });
                await navigator.clipboard.write([item]);
                showStatus('Copied!', false);
            } catch (err) {
                console.error('Copy failed:', err);
                let ok = false;
                try {
                    ok = fallbackCopy();
                } catch (fallbackErr) {
                    ok = false;
                }
                showStatus(ok ? 'Copied!' : 'Copy failed', !ok);
            }
        }

        function showStatus(message, isError) {
            const status = document.getElementById('status');
            status.textContent = message;
            status.className = 'status show' + (isError ? ' error' : '');
            setTimeout(() => {
                status.className = 'status';
            }, 2000);
        }

        editor.addEventListener('input', sendUpdate);
        document.getElementById('clear').addEventListener('click', function() {
            editor.value = '';
            sendUpdate();
            editor.focus();
        });
        document.getElementById('copy').addEventListener('click', copyForWord);
        connect();
    </script>
</body>
</html>"""


class RequestHandler(BaseHTTPRequestHandler):
    server_instance = None

    def log_message(self, format, *args):
        """Custom logging to use our logger"""
        logger.debug(f"HTTP {format % args}")

    def _send_json(self, status, payload):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload, indent=2).encode())

    def _read_content(self):
        content_length = int(self.headers.get('Content-Length', 0))
        data = json.loads(self.rfile.read(content_length).decode() or '{}')
        content = data.get('content', '')
        if not isinstance(content, str):
            raise ValueError("'content' must be a string")
        return content

    def do_GET(self):
        """Handle GET requests"""
        logger.debug(f"GET {self.path}")
        if self.path == '/' or self.path == '/index.html':
            html = self.server_instance.get_template_html()
            self.send_response(200)
            self.send_header('Content-Type', 'text/html; charset=utf-8')
            self.end_headers()
            self.wfile.write(html.encode())
            logger.info(f"Served editor page ({len(html)} bytes)")
        else:
            self.send_response(404)
            self.end_headers()
            logger.warning(f"404: {self.path}")

    def do_POST(self):
        """Handle POST requests for conversions and content updates"""
        logger.debug(f"POST {self.path}")
        try:
            if self.path == '/convert':
                content = self._read_content()
                html = self.server_instance.process_latex(content)
                self._send_json(200, {'html': html})
            elif self.path == '/update':
                content = self._read_content()
                logger.info(f"Update request: {len(content)} bytes")
                if not self.server_instance.loop:
                    logger.error("No event loop available!")
                    self._send_json(503, {'status': 'error', 'message': 'WebSocket server not running'})
                    return
                asyncio.run_coroutine_threadsafe(
                    self.server_instance.queue_update(content),
                    self.server_instance.loop
                )
                self._send_json(200, {'status': 'ok'})
            elif self.path == '/stats':
                stats = self.server_instance.get_stats()
                logger.debug(f"Stats request: {stats}")
                self._send_json(200, stats)
            else:
                self.send_response(404)
                self.end_headers()
        except Exception as e:
            logger.error(f"Error processing {self.path} request: {e}", exc_info=True)
            self._send_json(500, {'status': 'error', 'message': str(e)})


async def start_websocket_server(server, ws_port):
    """Start WebSocket server"""
    server.loop = asyncio.get_running_loop()
    logger.info(f"Starting WebSocket server on port {ws_port}")

    try:
        async with websockets.serve(server.websocket_handler, 'localhost', ws_port):
            logger.info(f"WebSocket server listening on ws://localhost:{ws_port}")
            await asyncio.Future()  # run forever
    except Exception as e:
        logger.error(f"WebSocket server error: {e}", exc_info=True)
        raise


def start_http_server(server, port):
    """Start HTTP server"""
    RequestHandler.server_instance = server
    httpd = HTTPServer(('localhost', port), RequestHandler)
    logger.info(f"HTTP server started on http://localhost:{port}")
    print(f"Server started on http://localhost:{port}", flush=True)
    httpd.serve_forever()


def convert_file(path, rewriter='parser'):
    """Convert a file (or stdin for '-') and return the HTML fragment"""
    if path == '-':
        source = sys.stdin.read()
    else:
        source = Path(path).read_text(encoding='utf-8')
    return LaTeXConverter(rewriter=rewriter).convert(source)


def main(argv=None):
    parser = argparse.ArgumentParser(description='LaTeX to Word Preview Server')
    parser.add_argument('--port', type=int, default=8765, help='HTTP server port')
    parser.add_argument('--ws-port', type=int, default=8766, help='WebSocket server port')
    parser.add_argument('--debounce', type=float, default=0.3, help='Debounce delay in seconds')
    parser.add_argument('--rewriter', choices=sorted(REWRITERS), default='parser',
                        help='Text rewriter implementation')
    parser.add_argument('--log-file', type=str, default=str(DEFAULT_LOG_FILE), help='Log file path')
    parser.add_argument('--log-level', type=str, default='INFO', help='Log level')
    parser.add_argument('--convert', type=str, metavar='FILE',
                        help="Convert FILE ('-' for stdin) to HTML on stdout and exit")
    args = parser.parse_args(argv)

    setup_logging(args.log_file, args.log_level)

    if args.convert:
        try:
            sys.stdout.write(convert_file(args.convert, args.rewriter))
        except OSError as e:
            logger.error(f"Cannot read {args.convert}: {e}")
            return 1
        return 0

    logger.info("=" * 60)
    logger.info("Starting LaTeX to Word Preview Server")
    logger.info(f"HTTP port: {args.port}, WebSocket port: {args.ws_port}")
    logger.info(f"Log file: {args.log_file}")
    logger.info("=" * 60)

    server = PreviewServer(port=args.port, ws_port=args.ws_port,
                           rewriter=args.rewriter, debounce_delay=args.debounce)

    # Start HTTP server in a thread
    http_thread = Thread(target=start_http_server, args=(server, args.port), daemon=True)
    http_thread.start()

    try:
        asyncio.run(start_websocket_server(server, args.ws_port))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        print("\nServer stopped", flush=True)
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        print(f"Error: {e}", flush=True)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
