from flask import Blueprint, render_template, request, redirect, url_for

from core.errors import NotFoundError, StoreError, ValidationError
from core.feedback import pending_message, redirect_with_message
from middleware.security import current_user_id, public_route, require_auth
from services import blog_service

blogs_bp = Blueprint('blogs', __name__)


@blogs_bp.route('/')
@blogs_bp.route('/home')
@public_route
def home():
    try:
        listing = blog_service.list_posts(request.args.get('page', 1), request.args.get('sort'))
    except StoreError as e:
        return render_template('home.html', message=None, error=e.user_message,
                               blogData=None, listing=None)

    return render_template('home.html', message=pending_message(), error=None,
                           blogData=listing.posts, listing=listing)


@blogs_bp.route('/myBlogs')
@blogs_bp.route('/myblogs')
@require_auth
def my_blogs():
    try:
        blogs = blog_service.list_owned_posts(current_user_id())
    except StoreError as e:
        return render_template('myblogs.html', blogData=[], message=None, error=e.user_message)

    return render_template('myblogs.html', blogData=blogs, message=pending_message(), error=None)


@blogs_bp.route('/addBlog')
@require_auth
def add_blog():
    return render_template('addblog.html', message=None, error=None)


@blogs_bp.route('/createBlog', methods=['POST'])
@require_auth
def create_blog():
    try:
        blog_service.create_post(current_user_id(),
                                 request.form.get('title'),
                                 request.form.get('body'))
    except (ValidationError, StoreError) as e:
        return render_template('addblog.html', message=None, error=e.user_message)

    return redirect_with_message('blogs.my_blogs', 'Blog created successfully.', 'success')


@blogs_bp.route('/editblog')
@require_auth
def edit_blog():
    try:
        blog = blog_service.get_post(request.args.get('blogId'), current_user_id())
    except (NotFoundError, StoreError):
        return redirect_with_message('blogs.my_blogs', 'Error in editing blog. Please try again.')

    return render_template('editblog.html', blogData=blog, message=pending_message(), error=None)


@blogs_bp.route('/updateBlog', methods=['POST'])
@require_auth
def update_blog():
    blog_id = request.args.get('blogId')
    try:
        blog_service.update_post(blog_id,
                                 request.form.get('title'),
                                 request.form.get('body'),
                                 current_user_id())
    except (ValidationError, StoreError):
        return redirect_with_message('blogs.edit_blog', 'Error updating blog. Please try again.',
                                     blogId=blog_id)

    return redirect(url_for('blogs.my_blogs'))


@blogs_bp.route('/deleteblog')
@require_auth
def delete_blog():
    try:
        blog_service.delete_post(request.args.get('blogId'), current_user_id())
    except (NotFoundError, StoreError):
        return redirect_with_message('blogs.my_blogs', 'Error deleting blog. Please try again.')

    return redirect(url_for('blogs.my_blogs'))
