"""
Embedded web page: directory grid, thumbnails and full-screen viewer.
"""

from .config import PRELOAD_BATCH_SIZE, PRELOAD_LOOKAHEAD
from .models import IMAGE_EXTENSIONS


def get_index_html() -> str:
    """Return the main HTML page."""
    return '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Photo Browser</title>
    <link rel="stylesheet" href="/styles.css">
</head>
<body>
    <div class="app">
        <header class="header">
            <h1>Photo Browser</h1>
            <div class="toolbar">
                <button class="btn" id="btn-up" title="Parent folder (Backspace)">Up</button>
                <span class="current-path" id="current-path"></span>
                <input type="text" class="path-input" id="path-input" placeholder="Go to path (absolute, relative or ~)">
                <button class="btn" id="btn-go">Go</button>
                <button class="btn" id="btn-refresh">Refresh</button>
            </div>
        </header>

        <main class="content">
            <div class="file-grid" id="file-grid"></div>
        </main>

        <!-- Full-screen viewer -->
        <div class="lightbox" id="lightbox">
            <button class="lightbox-close" id="lightbox-close">&times;</button>
            <button class="lightbox-nav lightbox-prev" id="lightbox-prev">&lt;</button>
            <button class="lightbox-nav lightbox-next" id="lightbox-next">&gt;</button>
            <div class="lightbox-content">
                <img id="lightbox-img" src="" alt="">
            </div>
            <div class="lightbox-info" id="lightbox-info"></div>
        </div>
    </div>

    <script src="/app.js"></script>
</body>
</html>'''


def get_styles_css() -> str:
    """Return CSS styles."""
    return '''* {
    box-sizing: border-box;
    margin: 0;
    padding: 0;
}

body {
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
    background: #1a1a2e;
    color: #eee;
    line-height: 1.5;
}

.header {
    background: #16213e;
    padding: 1rem;
    border-bottom: 1px solid #0f3460;
}

.header h1 {
    font-size: 1.5rem;
    margin-bottom: 0.5rem;
    color: #e94560;
}

.toolbar {
    display: flex;
    gap: 0.5rem;
    align-items: center;
    flex-wrap: wrap;
}

.btn, .path-input {
    background: #0f3460;
    color: #eee;
    border: 1px solid #1f4e8c;
    border-radius: 4px;
    padding: 0.3rem 0.8rem;
}

.btn:disabled {
    opacity: 0.5;
}

.current-path {
    font-family: monospace;
    color: #888;
}

.content {
    padding: 1rem;
}

.file-grid {
    display: grid;
    grid-template-columns: repeat(auto-fill, minmax(140px, 1fr));
    gap: 1rem;
}

.file-item {
    background: #16213e;
    border-radius: 8px;
    padding: 0.5rem;
    cursor: pointer;
    display: flex;
    flex-direction: column;
    align-items: center;
    text-align: center;
}

.file-item:hover {
    background: #0f3460;
}

.file-thumb, .file-icon {
    width: 128px;
    height: 128px;
    object-fit: contain;
    font-size: 3rem;
    display: flex;
    align-items: center;
    justify-content: center;
}

.file-name {
    font-size: 0.8rem;
    word-break: break-all;
}

.error, .empty, .loading-indicator {
    grid-column: 1 / -1;
    text-align: center;
    padding: 2rem;
}

.error {
    color: #e94560;
}

.lightbox {
    position: fixed;
    top: 0;
    left: 0;
    width: 100vw;
    height: 100vh;
    background: #000;
    display: none;
    z-index: 1000;
}

.lightbox.active {
    display: flex;
}

.lightbox-close, .lightbox-nav {
    position: absolute;
    background: rgba(0,0,0,0.5);
    border: none;
    color: white;
    font-size: 2rem;
    cursor: pointer;
    z-index: 10;
}

.lightbox-close {
    top: 1rem;
    right: 1rem;
}

.lightbox-nav {
    top: 50%;
    transform: translateY(-50%);
    padding: 1rem 1.5rem;
}

.lightbox-prev {
    left: 0;
}

.lightbox-next {
    right: 0;
}

.lightbox-content {
    flex: 1;
    display: flex;
    align-items: center;
    justify-content: center;
    padding: 1rem 4rem 3rem;
}

#lightbox-img {
    max-width: 100%;
    max-height: 100%;
    object-fit: contain;
}

.lightbox-info {
    position: absolute;
    bottom: 0;
    left: 0;
    right: 0;
    padding: 0.8rem 1rem;
    text-align: center;
    color: #aaa;
}
'''


def get_app_js() -> str:
    """Return JavaScript."""
    image_exts = ', '.join(f"'{ext}'" for ext in IMAGE_EXTENSIONS)
    return '''// Settings
const IMAGE_EXTS = [%(image_exts)s];
const PRELOAD_BATCH_SIZE = %(batch)d;
const PRELOAD_LOOKAHEAD = %(lookahead)d;

// Listing state
let currentPath = null;
let listing = null;
let failedThumbnails = new Set();  // per listing, never retried

// Viewer state
let viewerOpen = false;
let imageList = [];
let currentImageIndex = 0;

// Prefetch state
let preloaded = new Set();
let highWaterMark = -1;
let preloadCache = [];

// DOM Elements
const fileGridEl = document.getElementById('file-grid');
const currentPathEl = document.getElementById('current-path');
const pathInputEl = document.getElementById('path-input');
const upBtn = document.getElementById('btn-up');
const lightboxEl = document.getElementById('lightbox');
const lightboxImgEl = document.getElementById('lightbox-img');
const lightboxInfoEl = document.getElementById('lightbox-info');

document.addEventListener('DOMContentLoaded', () => {
    loadDirectory(null);

    upBtn.addEventListener('click', goToParentDirectory);
    document.getElementById('btn-refresh').addEventListener('click', () => loadDirectory(currentPath));
    document.getElementById('btn-go').addEventListener('click', submitPath);
    pathInputEl.addEventListener('keydown', (e) => {
        if (e.key === 'Enter') submitPath();
    });
    document.addEventListener('keydown', (e) => {
        if (viewerOpen) return;
        if (e.key === 'Backspace' && e.target.tagName !== 'INPUT') goToParentDirectory();
    });

    document.getElementById('lightbox-close').addEventListener('click', closeViewer);
    document.getElementById('lightbox-prev').addEventListener('click', (e) => {
        e.stopPropagation();
        navigateImage(-1);
    });
    document.getElementById('lightbox-next').addEventListener('click', (e) => {
        e.stopPropagation();
        navigateImage(1);
    });
    lightboxEl.addEventListener('click', (e) => {
        if (e.target !== lightboxImgEl) closeViewer();
    });
    document.addEventListener('fullscreenchange', () => {
        if (!document.fullscreenElement) closeViewer();
    });
});

function apiUrl(endpoint, path, extra = '') {
    return `/api/fs/${endpoint}?path=${encodeURIComponent(path)}${extra}`;
}

async function loadDirectory(path) {
    fileGridEl.innerHTML = '<div class="loading-indicator">Loading...</div>';
    const url = path === null ? '/api/fs/list' : apiUrl('list', path);

    try {
        const res = await fetch(url);
        const data = await res.json();
        if (!res.ok) {
            renderError(data.hint ? `${data.error} (${data.hint})` : data.error, path);
            return;
        }

        // A new listing replaces everything derived from the old one
        listing = data;
        currentPath = path === null ? '' : path;
        failedThumbnails = new Set();
        resetPreload();

        currentPathEl.textContent = data.path;
        upBtn.disabled = data.parent === null;
        renderFiles(data.items);
    } catch (err) {
        console.error('Failed to load directory:', err);
        renderError('Failed to load directory', path);
    }
}

function renderError(message, path) {
    fileGridEl.innerHTML = `<div class="error">${escapeHtml(message || 'Error')}<br>
        <button class="btn" id="btn-retry">Retry</button></div>`;
    document.getElementById('btn-retry').addEventListener('click', () => loadDirectory(path));
}

function submitPath() {
    const value = pathInputEl.value.trim();
    if (!value) return;
    pathInputEl.value = '';
    loadDirectory(value);
}

function goToParentDirectory() {
    if (listing && listing.parent !== null) loadDirectory(listing.parent);
}

function isImage(item) {
    return item.type === 'file' && IMAGE_EXTS.includes(item.ext);
}

function renderFiles(items) {
    let html = '';

    for (const item of items) {
        const path = escapeHtml(item.path);
        if (item.type === 'directory') {
            html += `<div class="file-item folder" data-path="${path}">
                    <div class="file-icon">&#128193;</div>
                    <div class="file-name">${escapeHtml(item.name)}</div></div>`;
        } else if (isImage(item) && !failedThumbnails.has(item.path)) {
            html += `<div class="file-item image" data-path="${path}">
                    <img class="file-thumb" src="${apiUrl('thumbnail', item.path, '&size=128')}"
                         alt="${escapeHtml(item.name)}" loading="lazy">
                    <div class="file-name">${escapeHtml(item.name)}</div></div>`;
        } else {
            const icon = isImage(item) ? '&#128444;' : '&#128196;';
            html += `<div class="file-item${isImage(item) ? ' image' : ''}" data-path="${path}">
                    <div class="file-icon">${icon}</div>
                    <div class="file-name">${escapeHtml(item.name)}</div></div>`;
        }
    }

    fileGridEl.innerHTML = html || '<div class="empty">This directory is empty</div>';

    fileGridEl.querySelectorAll('.file-thumb').forEach((img) => {
        img.addEventListener('error', () => {
            const path = img.closest('.file-item').dataset.path;
            failedThumbnails.add(path);
            img.outerHTML = '<div class="file-icon">&#128444;</div>';
        }, { once: true });
    });
}

fileGridEl.addEventListener('dblclick', (e) => {
    const item = e.target.closest('.file-item');
    if (!item) return;

    if (item.classList.contains('folder')) {
        loadDirectory(item.dataset.path);
    } else if (item.classList.contains('image')) {
        openViewer(item.dataset.path);
    }
});

// Prefetch
function resetPreload() {
    preloaded = new Set();
    highWaterMark = -1;
    preloadCache = [];
}

function preloadImages(startIndex, count = PRELOAD_BATCH_SIZE) {
    const endIndex = Math.min(startIndex + count, imageList.length);
    for (let i = startIndex; i < endIndex; i++) {
        const path = imageList[i].path;
        if (preloaded.has(path)) continue;
        const img = new Image();
        img.src = apiUrl('file', path);
        preloadCache.push(img);
        preloaded.add(path);
    }
    if (endIndex > startIndex) highWaterMark = endIndex - 1;
}

// Viewer
function onViewerKey(e) {
    if (e.key === 'Escape') closeViewer();
    else if (e.key === 'ArrowLeft') navigateImage(-1);
    else if (e.key === 'ArrowRight') navigateImage(1);
}

function openViewer(path) {
    if (viewerOpen || !listing) return;
    const images = listing.items.filter(isImage);
    const index = images.findIndex(img => img.path === path);
    if (index === -1) return;

    imageList = images;
    currentImageIndex = index;
    viewerOpen = true;
    resetPreload();
    preloadImages(index);

    showImage();
    lightboxEl.classList.add('active');
    document.addEventListener('keydown', onViewerKey);
    if (lightboxEl.requestFullscreen) {
        lightboxEl.requestFullscreen().catch((err) => console.error('Fullscreen failed:', err));
    }
}

function closeViewer() {
    if (!viewerOpen) return;
    viewerOpen = false;
    document.removeEventListener('keydown', onViewerKey);
    lightboxEl.classList.remove('active');
    lightboxImgEl.src = '';
    if (document.fullscreenElement) document.exitFullscreen();
}

function navigateImage(step) {
    if (!viewerOpen || imageList.length === 0) return;
    currentImageIndex = (currentImageIndex + step + imageList.length) %% imageList.length;
    showImage();

    if (currentImageIndex > highWaterMark - PRELOAD_LOOKAHEAD && highWaterMark < imageList.length - 1) {
        preloadImages(highWaterMark + 1);
    }
}

function showImage() {
    const item = imageList[currentImageIndex];
    lightboxImgEl.src = apiUrl('file', item.path);
    lightboxImgEl.alt = item.name;
    lightboxInfoEl.textContent = `${item.name} (${currentImageIndex + 1} / ${imageList.length})`;
}

function escapeHtml(str) {
    const div = document.createElement('div');
    div.textContent = str;
    return div.innerHTML;
}
''' % {
        'image_exts': image_exts,
        'batch': PRELOAD_BATCH_SIZE,
        'lookahead': PRELOAD_LOOKAHEAD,
    }
